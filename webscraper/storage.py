from __future__ import annotations

import json
import queue
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import asdict, is_dataclass
from enum import Enum
from typing import Any, Optional

from .models import ScrapeResult


class StorageBase(ABC):
    """Abstract base class for all result sinks.

    Subclasses must implement write() and close() to handle
    persistence of scrape results.
    """

    @abstractmethod
    def write(self, result: ScrapeResult) -> None:
        """Persist a single scrape result."""

    @abstractmethod
    def close(self) -> None:
        """Flush pending writes and release resources."""


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        value = asdict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_jsonable(v) for v in value]
    return value


class JsonlStorage(StorageBase):
    """Stores scrape results as JSON Lines (.jsonl) using a background writer thread."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._queue: queue.Queue[Optional[ScrapeResult]] = queue.Queue()
        self._thread = threading.Thread(target=self._writer, daemon=True)
        self._thread.start()

    def write(self, result: ScrapeResult) -> None:
        """Enqueue a scrape result for background writing."""
        self._queue.put(result)

    def close(self) -> None:
        """Signal the writer thread to flush and stop."""
        self._queue.put(None)
        self._thread.join(timeout=5)

    def _writer(self) -> None:
        with open(self._path, "a", encoding="utf-8") as f:
            while True:
                item = self._queue.get()
                if item is None:
                    break
                record = {
                    "timestamp": time.time(),
                    "variant": item.variant,
                    "url": item.url,
                    "success": item.success,
                    "state": item.state,
                    "latency": item.latency_ms,
                    "parsed_data": _to_jsonable(item.data),
                    "error_type": item.error_type,
                    "error": item.error,
                }
                f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
                f.flush()
