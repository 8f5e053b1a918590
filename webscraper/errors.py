from __future__ import annotations

from typing import Optional


class ScraperError(Exception):
    """Base class for all engine failures."""


class InvalidTarget(ScraperError):
    """URL rejected by a scraper variant's validation predicate."""

    def __init__(self, url: Optional[str], variant: str) -> None:
        super().__init__(f"URL failed is_valid() check for {variant}: {url!r}")
        self.url = url
        self.variant = variant


class FetchFailure(ScraperError):
    """The browser could not load or render a page. Wraps the underlying cause."""

    def __init__(self, url: str, cause: BaseException) -> None:
        super().__init__(f"Failed to fetch/render {url}: {type(cause).__name__}: {cause}")
        self.url = url
        self.cause = cause


class ClickFailure(ScraperError):
    """Every click strategy failed for a control."""

    def __init__(self, element_id: str, errors: list[tuple[str, BaseException]]) -> None:
        attempts = "; ".join(f"{name}: {type(exc).__name__}" for name, exc in errors)
        super().__init__(f"Could not click #{element_id} ({attempts})")
        self.element_id = element_id
        self.errors = errors


class InvalidArgument(ScraperError, ValueError):
    """An explicitly requested lookup key is not present."""


class AlreadyActive(ScraperError):
    """A browser session is already owned by someone else."""


class NoDocument(ScraperError):
    """A page query was made before any successful scrape."""


class DownloadFailure(ScraperError):
    """A file transfer failed. Never escapes the downloader."""
