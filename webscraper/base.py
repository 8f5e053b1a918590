from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .document import RenderedDocument
from .errors import InvalidTarget
from .fetcher import Fetcher
from .logging_utils import log_event, resolve_logger
from .models import LifecycleState, ScrapeOutcome, ScrapeResult, ScrapeTarget, ScraperVariant
from .validators import PrefixValidator


class Extractor(ABC):
    """Pure function from a rendered document to a variant's results."""

    @abstractmethod
    def extract(self, document: RenderedDocument) -> Any:
        ...


class Scraper:
    """The validate -> fetch -> parse pipeline shared by every scraper variant.

    A variant is a composition of a validator, a fetcher and an extractor;
    nothing here is site-specific.

    - Validation happens before any browser activity and raises InvalidTarget.
    - Fetch failures propagate unchanged.
    - ``state`` reflects the last call: DONE on success, FAILED otherwise.
    """

    def __init__(
        self,
        variant: ScraperVariant,
        validator: PrefixValidator,
        fetcher: Fetcher,
        extractor: Extractor,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._variant = variant
        self._validator = validator
        self._fetcher = fetcher
        self._extractor = extractor
        self._logger = resolve_logger(logger, __name__)
        self._state = LifecycleState.IDLE

    @property
    def variant(self) -> ScraperVariant:
        return self._variant

    @property
    def state(self) -> LifecycleState:
        return self._state

    def is_valid(self, url: Optional[str]) -> bool:
        return self._validator.is_valid(url)

    def scrape(self, url: str) -> ScrapeOutcome:
        self._state = LifecycleState.VALIDATING
        if not self.is_valid(url):
            self._state = LifecycleState.FAILED
            log_event(self._logger, logging.WARNING, "invalid_target", variant=self._variant.value, url=url)
            raise InvalidTarget(url, self._variant.value)

        target = ScrapeTarget(url=url, variant=self._variant)
        try:
            self._state = LifecycleState.FETCHING
            document = self._fetcher.fetch(url)

            self._state = LifecycleState.PARSING
            data = self._extractor.extract(document)
        except Exception:
            self._state = LifecycleState.FAILED
            raise

        self._state = LifecycleState.DONE
        return ScrapeOutcome(target=target, document=document, data=data)

    def run(self, url: str) -> ScrapeResult:
        """Like scrape(), but reports failures in the result instead of raising."""
        return run_to_result(self._variant, url, lambda: self.scrape(url).data, lambda: self._state)


def run_to_result(
    variant: ScraperVariant,
    url: str,
    call: Callable[[], Any],
    state: Optional[Callable[[], LifecycleState]] = None,
) -> ScrapeResult:
    """Invoke call() and fold its value or exception into a ScrapeResult."""
    start_ms = _now_ms()
    try:
        data = call()
    except Exception as exc:  # noqa: BLE001
        return ScrapeResult(
            variant=variant.value,
            url=url,
            success=False,
            state=(state() if state else LifecycleState.FAILED).value,
            latency_ms=_now_ms() - start_ms,
            data=None,
            error_type=type(exc).__name__,
            error=str(exc),
        )
    return ScrapeResult(
        variant=variant.value,
        url=url,
        success=True,
        state=(state() if state else LifecycleState.DONE).value,
        latency_ms=_now_ms() - start_ms,
        data=data,
        error_type=None,
    )


def _now_ms() -> int:
    return int(time.time() * 1000)
