"""
Structured logging helpers for scraping workflows.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.
    """

    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))


def resolve_logger(logger: Optional[logging.Logger], name: str) -> logging.Logger:
    """Use the injected sink when given, otherwise the module logger."""
    return logger if logger is not None else logging.getLogger(name)
