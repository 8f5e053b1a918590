from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .document import RenderedDocument


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


def _default_download_dir() -> str:
    return os.path.join(os.path.expanduser("~"), "Downloads")


class ScraperVariant(str, Enum):
    BOOKS = "books"
    FRED = "fred"
    FRED_SERIES = "fred-series"


class LifecycleState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    FETCHING = "fetching"
    PARSING = "parsing"
    DONE = "done"
    FAILED = "failed"


class AssistedSessionState(str, Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    CAPTURED = "captured"


class ChildStatus(str, Enum):
    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ScraperConfig:
    """Settings handed by value to every scraper, including delegated children."""

    user_agent: str = DEFAULT_USER_AGENT
    timeout_s: float = 15.0
    settle_delay_s: float = 0.0
    reveal_delay_s: float = 3.0
    scroll_pause_s: float = 1.0
    headless: bool = True
    download_dir: str = field(default_factory=_default_download_dir)
    download_timeout_s: float = 10.0


@dataclass(frozen=True)
class ScrapeTarget:
    url: str
    variant: ScraperVariant


@dataclass(frozen=True)
class ScrapeOutcome:
    target: ScrapeTarget
    document: "RenderedDocument"
    data: Any


@dataclass(frozen=True)
class ScrapeResult:
    variant: str
    url: str
    success: bool
    state: str
    latency_ms: int
    data: Optional[Any]
    error_type: Optional[str]
    error: Optional[str] = None


@dataclass(frozen=True)
class PageMetrics:
    """Per-page values derived from one rendered listing page."""

    entry_count: int = 0
    price_sum: float = 0.0
    priced_count: int = 0
    rating_sum: int = 0
    rated_count: int = 0

    @property
    def average_price(self) -> float:
        return self.price_sum / self.priced_count if self.priced_count else 0.0

    @property
    def average_rating(self) -> float:
        return self.rating_sum / self.rated_count if self.rated_count else 0.0


@dataclass(frozen=True)
class GenreAggregate:
    """Running sums over a genre's pagination chain.

    Averages divide by the listing's reported total, not by the number of
    entries that happened to parse.
    """

    genre: str
    total_results: int = 0
    price_sum: float = 0.0
    rating_sum: int = 0
    pages_visited: int = 0
    entries_seen: int = 0

    def add(self, metrics: PageMetrics) -> "GenreAggregate":
        return replace(
            self,
            price_sum=self.price_sum + metrics.price_sum,
            rating_sum=self.rating_sum + metrics.rating_sum,
            pages_visited=self.pages_visited + 1,
            entries_seen=self.entries_seen + metrics.entry_count,
        )

    @property
    def average_price(self) -> float:
        return self.price_sum / self.total_results if self.total_results > 0 else 0.0

    @property
    def average_rating(self) -> float:
        return self.rating_sum / self.total_results if self.total_results > 0 else 0.0


@dataclass(frozen=True)
class ChildOutcome:
    url: str
    status: ChildStatus
    path: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class DelegationSummary:
    listing_url: str
    outcomes: tuple[ChildOutcome, ...] = ()

    @property
    def attempted(self) -> int:
        return len(self.outcomes)

    @property
    def succeeded(self) -> int:
        return sum(1 for o in self.outcomes if o.status is ChildStatus.DOWNLOADED)

    @property
    def skipped(self) -> int:
        return sum(1 for o in self.outcomes if o.status is ChildStatus.SKIPPED)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if o.status is ChildStatus.FAILED)
