from __future__ import annotations

from typing import Optional

BOOKS_PREFIX = "https://books.toscrape.com/"
FRED_SEARCH_PREFIX = "https://fred.stlouisfed.org/searchresults/"
FRED_SERIES_PREFIX = "https://fred.stlouisfed.org/series/"


class PrefixValidator:
    """Accepts URLs that start with a site/path prefix."""

    def __init__(self, prefix: str) -> None:
        if not prefix:
            raise ValueError("prefix is required")
        self._prefix = prefix

    @property
    def prefix(self) -> str:
        return self._prefix

    def is_valid(self, url: Optional[str]) -> bool:
        return isinstance(url, str) and url.startswith(self._prefix)

    def __repr__(self) -> str:
        return f"PrefixValidator({self._prefix!r})"
