from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options
from selenium.webdriver.chrome.service import Service
from selenium.webdriver.common.by import By
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait
from webdriver_manager.chrome import ChromeDriverManager

from .document import RenderedDocument
from .errors import FetchFailure
from .logging_utils import log_event, resolve_logger
from .models import ScraperConfig
from .strategies import ClickStrategy, click_with_fallback, default_click_strategies

DriverFactory = Callable[[], Any]


class Fetcher(ABC):
    """Turns a URL into a RenderedDocument."""

    @abstractmethod
    def fetch(self, url: str) -> RenderedDocument:
        ...


class ChromeDriverFactory:
    """Builds a Chrome WebDriver, installing a matching chromedriver on demand."""

    def __init__(self, config: ScraperConfig, headless: Optional[bool] = None) -> None:
        self._config = config
        self._headless = config.headless if headless is None else headless

    def options(self) -> Options:
        opts = Options()
        if self._headless:
            opts.add_argument("--headless=new")
            opts.add_argument("--blink-settings=imagesEnabled=false")
        opts.add_argument("--disable-gpu")
        opts.add_argument("--no-sandbox")
        opts.add_argument("--disable-dev-shm-usage")
        opts.add_argument(f"--user-agent={self._config.user_agent}")
        return opts

    def __call__(self) -> Any:
        service = Service(ChromeDriverManager().install())
        return webdriver.Chrome(service=service, options=self.options())


class ReadyCondition(ABC):
    """Decides when a navigated page is rendered enough to capture."""

    @abstractmethod
    def wait(self, driver: Any, timeout_s: float) -> None:
        ...


class SettleDelay(ReadyCondition):
    def __init__(self, seconds: float = 0.0, sleep: Callable[[float], None] = time.sleep) -> None:
        self._seconds = max(0.0, seconds)
        self._sleep = sleep

    def wait(self, driver: Any, timeout_s: float) -> None:
        if self._seconds:
            self._sleep(self._seconds)


class ClickThenSettle(ReadyCondition):
    """Waits for a control, clicks it, then gives the page time to reveal content.

    Used for pages that only expose their download links after an
    interaction; there is no readiness signal for the reveal itself."""

    def __init__(
        self,
        element_id: str,
        settle_s: float = 3.0,
        strategies: Optional[Iterable[ClickStrategy]] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._element_id = element_id
        self._settle_s = max(0.0, settle_s)
        self._strategies = list(strategies) if strategies is not None else default_click_strategies(sleep=sleep)
        self._sleep = sleep
        self._logger = resolve_logger(logger, __name__)

    def wait(self, driver: Any, timeout_s: float) -> None:
        wait = WebDriverWait(driver, timeout_s)
        wait.until(EC.presence_of_element_located((By.ID, self._element_id)))

        def _failed(name: str, exc: Exception) -> None:
            log_event(
                self._logger,
                logging.DEBUG,
                "click_attempt_failed",
                element_id=self._element_id,
                strategy=name,
                error=type(exc).__name__,
            )

        used = click_with_fallback(driver, wait, self._element_id, self._strategies, on_error=_failed)
        log_event(self._logger, logging.DEBUG, "control_clicked", element_id=self._element_id, strategy=used)
        if self._settle_s:
            self._sleep(self._settle_s)


class SeleniumFetcher(Fetcher):
    """Loads a page in a fresh browser session per call and returns its rendered HTML.

    The session is always torn down before fetch() returns or raises."""

    def __init__(
        self,
        config: ScraperConfig,
        ready: Optional[ReadyCondition] = None,
        driver_factory: Optional[DriverFactory] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._ready = ready if ready is not None else SettleDelay(config.settle_delay_s)
        self._driver_factory = driver_factory if driver_factory is not None else ChromeDriverFactory(config)
        self._logger = resolve_logger(logger, __name__)

    def fetch(self, url: str) -> RenderedDocument:
        start = time.time()
        try:
            driver = self._driver_factory()
        except Exception as exc:  # noqa: BLE001
            log_event(self._logger, logging.ERROR, "browser_launch_failed", url=url, error=str(exc))
            raise FetchFailure(url, exc) from exc

        try:
            driver.set_page_load_timeout(self._config.timeout_s)
            driver.get(url)
            self._ready.wait(driver, self._config.timeout_s)
            html = driver.page_source
            final_url = driver.current_url or url
        except Exception as exc:  # noqa: BLE001
            log_event(
                self._logger,
                logging.WARNING,
                "fetch_failed",
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise FetchFailure(url, exc) from exc
        finally:
            self._teardown(driver, url)

        log_event(
            self._logger,
            logging.INFO,
            "page_rendered",
            url=url,
            final_url=final_url,
            latency_ms=int((time.time() - start) * 1000),
        )
        return RenderedDocument.parse(html, final_url)

    def _teardown(self, driver: Any, url: str) -> None:
        try:
            driver.quit()
        except Exception as exc:  # noqa: BLE001
            log_event(self._logger, logging.DEBUG, "browser_quit_failed", url=url, error=str(exc))
