from __future__ import annotations

import logging
from typing import Any, Optional

from .controller import BROWSER_SLOT, BrowserSlot
from .errors import AlreadyActive
from .fetcher import ChromeDriverFactory, DriverFactory
from .logging_utils import log_event, resolve_logger
from .models import AssistedSessionState, ScraperConfig

START_URL = "https://www.google.com"
PAGE_LOAD_TIMEOUT_S = 30.0


class AssistedSession:
    """A visible browser the user drives by hand, so its final URL can be captured.

    INACTIVE --start()--> ACTIVE --capture()--> CAPTURED; stop() from any
    state returns to INACTIVE. start() is only valid from INACTIVE.
    """

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        driver_factory: Optional[DriverFactory] = None,
        slot: Optional[BrowserSlot] = None,
        start_url: str = START_URL,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or ScraperConfig()
        self._driver_factory = driver_factory or ChromeDriverFactory(self._config, headless=False)
        self._slot = slot if slot is not None else BROWSER_SLOT
        self._start_url = start_url
        self._logger = resolve_logger(logger, __name__)
        self._owner = f"assisted-{id(self):x}"
        self._driver: Any = None
        self._state = AssistedSessionState.INACTIVE
        self._captured_url: Optional[str] = None

    @property
    def state(self) -> AssistedSessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is not AssistedSessionState.INACTIVE

    @property
    def captured_url(self) -> Optional[str]:
        return self._captured_url

    def start(self) -> None:
        if self._state is not AssistedSessionState.INACTIVE:
            raise AlreadyActive("Assisted mode is already active")
        self._slot.claim(self._owner)
        try:
            driver = self._driver_factory()
        except Exception:
            self._slot.release(self._owner)
            raise
        try:
            driver.set_page_load_timeout(PAGE_LOAD_TIMEOUT_S)
            driver.get(self._start_url)
        except Exception:
            self._quit(driver)
            self._slot.release(self._owner)
            raise

        self._driver = driver
        self._captured_url = None
        self._state = AssistedSessionState.ACTIVE
        log_event(self._logger, logging.INFO, "assisted_session_started", start_url=self._start_url)

    def current_url(self) -> Optional[str]:
        if self._driver is None or self._state is AssistedSessionState.INACTIVE:
            return None
        try:
            return self._driver.current_url or None
        except Exception as exc:  # noqa: BLE001
            log_event(self._logger, logging.DEBUG, "assisted_url_unavailable", error=str(exc))
            return None

    def capture(self) -> Optional[str]:
        """Record the live URL. The session stays open until stop()."""
        url = self.current_url()
        if url is None:
            log_event(self._logger, logging.WARNING, "assisted_capture_empty")
            return None
        self._captured_url = url
        self._state = AssistedSessionState.CAPTURED
        log_event(self._logger, logging.INFO, "assisted_url_captured", url=url)
        return url

    def stop(self) -> None:
        if self._driver is not None:
            self._quit(self._driver)
            self._driver = None
        if self._state is not AssistedSessionState.INACTIVE:
            log_event(self._logger, logging.INFO, "assisted_session_stopped")
        self._state = AssistedSessionState.INACTIVE
        self._slot.release(self._owner)

    def __enter__(self) -> "AssistedSession":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    def _quit(self, driver: Any) -> None:
        try:
            driver.quit()
        except Exception as exc:  # noqa: BLE001
            log_event(self._logger, logging.DEBUG, "assisted_quit_failed", error=str(exc))
