from __future__ import annotations

import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

from .errors import AlreadyActive


class BrowserSlot:
    """Exclusive ownership token for the process's one live browser session.

    Scrape jobs and the assisted session both claim it; a second claimant is
    rejected with AlreadyActive instead of waiting."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._owner: Optional[str] = None

    def claim(self, owner: str) -> None:
        with self._lock:
            if self._owner is not None:
                raise AlreadyActive(f"Browser session already in use by {self._owner}")
            self._owner = owner

    def release(self, owner: str) -> None:
        with self._lock:
            if self._owner == owner:
                self._owner = None

    @contextmanager
    def hold(self, owner: str) -> Iterator[None]:
        self.claim(owner)
        try:
            yield
        finally:
            self.release(owner)

    @property
    def owner(self) -> Optional[str]:
        return self._owner


BROWSER_SLOT = BrowserSlot()


class ScrapeController:
    """Runs scrape invocations off the caller's thread, one at a time.

    A single worker keeps scrapes strictly sequential; each job holds the
    browser slot while it runs, so a job submitted while an assisted session
    is active fails with AlreadyActive."""

    def __init__(self, slot: Optional[BrowserSlot] = None) -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="scrape")
        self._slot = slot if slot is not None else BROWSER_SLOT
        self._lock = threading.Lock()
        self._running = False

    def start(self) -> None:
        with self._lock:
            self._running = True

    def stop(self, wait: bool = True) -> None:
        with self._lock:
            self._running = False
        self._executor.shutdown(wait=wait, cancel_futures=False)

    @property
    def running(self) -> bool:
        return self._running

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        """Queue fn(*args, **kwargs); the returned Future carries its result or exception."""
        with self._lock:
            if not self._running:
                raise RuntimeError("ScrapeController is not running; call start() first")
            return self._executor.submit(self._wrap_job, fn, args, kwargs)

    def _wrap_job(self, fn: Callable[..., Any], args: tuple, kwargs: dict) -> Any:
        with self._slot.hold(f"scrape-{uuid.uuid4().hex[:8]}"):
            return fn(*args, **kwargs)
