"""Listing extraction and genre aggregation for books.toscrape.com."""

from __future__ import annotations

import logging
import re
from typing import Optional

from .base import Extractor, Scraper
from .document import RenderedDocument
from .errors import InvalidArgument, NoDocument
from .fetcher import Fetcher, SeleniumFetcher
from .logging_utils import log_event, resolve_logger
from .models import GenreAggregate, PageMetrics, ScraperConfig, ScraperVariant
from .validators import BOOKS_PREFIX, PrefixValidator

ITEM_SELECTOR = "article.product_pod"
PRICE_SELECTOR = "p.price_color"
RATING_SELECTOR = "p.star-rating"
GENRE_LINK_SELECTOR = "div.side_categories ul.nav-list > li > ul > li > a"
TOTAL_RESULTS_SELECTOR = "form.form-horizontal strong"
PAGE_MARKER_SELECTOR = "li.current"
NEXT_PAGE_SELECTOR = "li.next > a"

RATING_WORDS = {"One": 1, "Two": 2, "Three": 3, "Four": 4, "Five": 5}

_PRICE_RE = re.compile(r"^[^\d\-+.]*([-+]?\d+(?:\.\d+)?)\s*$")
_PAGE_RE = re.compile(r"Page\s+(\d+)\s+of\s+(\d+)", re.IGNORECASE)

# Bound on pagination hops; the page marker normally stops traversal long before this.
MAX_GENRE_PAGES = 1000


def parse_price(text: Optional[str]) -> Optional[float]:
    """'£51.77' -> 51.77. Returns None when the text is not a currency-prefixed number."""
    if not text:
        return None
    match = _PRICE_RE.match(text.strip())
    if match is None:
        return None
    try:
        return float(match.group(1))
    except ValueError:
        return None


def parse_rating(classes: Optional[list[str]]) -> Optional[int]:
    for name in classes or ():
        if name in RATING_WORDS:
            return RATING_WORDS[name]
    return None


def list_genres(document: RenderedDocument) -> list[str]:
    return [link.get_text().strip() for link in document.select(GENRE_LINK_SELECTOR)]


def find_genre_url(document: RenderedDocument, genre: str) -> Optional[str]:
    wanted = genre.strip() if genre else ""
    for link in document.select(GENRE_LINK_SELECTOR):
        if link.get_text().strip() == wanted:
            return document.abs_url(link) or None
    return None


def total_results(document: RenderedDocument) -> int:
    text = document.text_of(TOTAL_RESULTS_SELECTOR)
    if not text:
        return 0
    try:
        return max(0, int(text.strip()))
    except ValueError:
        return 0


def page_bounds(document: RenderedDocument) -> tuple[int, int]:
    """(current, last) from the 'Page X of N' marker; (1, 1) when absent."""
    text = document.text_of(PAGE_MARKER_SELECTOR)
    if text:
        match = _PAGE_RE.search(text)
        if match:
            current, last = int(match.group(1)), int(match.group(2))
            if last >= 1:
                return max(1, current), last
    return 1, 1


def next_page_url(document: RenderedDocument) -> Optional[str]:
    return document.abs_url(document.select_one(NEXT_PAGE_SELECTOR)) or None


class BookPageExtractor(Extractor):
    """Entry count plus price and rating sums for one listing page.

    Entries with an unparseable price or rating are left out of that field's
    sum and count; the entry itself still counts toward entry_count."""

    def extract(self, document: RenderedDocument) -> PageMetrics:
        items = document.select(ITEM_SELECTOR)
        price_sum = 0.0
        priced = 0
        rating_sum = 0
        rated = 0
        for item in items:
            price = parse_price(_text(item.select_one(PRICE_SELECTOR)))
            if price is not None:
                price_sum += price
                priced += 1
            rating_node = item.select_one(RATING_SELECTOR)
            rating = parse_rating(rating_node.get("class") if rating_node is not None else None)
            if rating is not None:
                rating_sum += rating
                rated += 1
        return PageMetrics(
            entry_count=len(items),
            price_sum=price_sum,
            priced_count=priced,
            rating_sum=rating_sum,
            rated_count=rated,
        )


class BookScraper:
    """Aggregate scraper for book listings.

    scrape() loads a listing page; the query methods then read from that
    page, and the genre methods follow the sidebar link and its pagination.
    """

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        fetcher: Optional[Fetcher] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or ScraperConfig()
        self._logger = resolve_logger(logger, __name__)
        self._extractor = BookPageExtractor()
        self._scraper = Scraper(
            variant=ScraperVariant.BOOKS,
            validator=PrefixValidator(BOOKS_PREFIX),
            fetcher=fetcher if fetcher is not None else SeleniumFetcher(self._config, logger=logger),
            extractor=self._extractor,
            logger=logger,
        )
        self._document: Optional[RenderedDocument] = None
        self._metrics = PageMetrics()
        self._genre_cache: dict[str, GenreAggregate] = {}

    @property
    def lifecycle(self) -> Scraper:
        return self._scraper

    @property
    def document(self) -> RenderedDocument:
        self._require_document()
        return self._document

    def is_valid(self, url: Optional[str]) -> bool:
        return self._scraper.is_valid(url)

    def scrape(self, url: str) -> PageMetrics:
        outcome = self._scraper.scrape(url)
        self._document = outcome.document
        self._metrics = outcome.data
        self._genre_cache = {}
        return self._metrics

    def get_all_genres(self) -> list[str]:
        return list_genres(self.document)

    def count_entries_per_page(self) -> int:
        self._require_document()
        return self._metrics.entry_count

    def average_price_per_page(self) -> float:
        self._require_document()
        return self._metrics.average_price

    def average_rating_per_page(self) -> float:
        self._require_document()
        return self._metrics.average_rating

    def get_total_results_for_genre(self, genre: str) -> int:
        """Authoritative result count from the genre's first listing page.

        Raises InvalidArgument when the genre is not in the sidebar."""
        document, _ = self._genre_first_page(genre)
        return total_results(document)

    def genre_aggregate(self, genre: str) -> GenreAggregate:
        """Walk the genre's pagination chain, summing prices and ratings.

        The denominator is the listing's reported total, so pages with
        unparseable entries do not shrink it. An unknown genre yields an
        empty aggregate (averages of 0.0)."""
        key = genre.strip() if genre else ""
        cached = self._genre_cache.get(key)
        if cached is not None:
            return cached

        try:
            document, metrics = self._genre_first_page(genre)
        except InvalidArgument:
            log_event(self._logger, logging.INFO, "unknown_genre", genre=genre)
            return GenreAggregate(genre=key)

        aggregate = GenreAggregate(genre=key, total_results=total_results(document))
        visited = {document.base_uri}
        while True:
            aggregate = aggregate.add(metrics)
            current, last = page_bounds(document)
            following = next_page_url(document)
            if following is None or current >= last or following in visited:
                break
            if aggregate.pages_visited >= MAX_GENRE_PAGES:
                log_event(self._logger, logging.WARNING, "pagination_limit_reached", genre=key)
                break
            outcome = self._scraper.scrape(following)
            document, metrics = outcome.document, outcome.data
            visited.add(following)

        log_event(
            self._logger,
            logging.INFO,
            "genre_aggregated",
            genre=key,
            pages=aggregate.pages_visited,
            total_results=aggregate.total_results,
            entries_seen=aggregate.entries_seen,
        )
        self._genre_cache[key] = aggregate
        return aggregate

    def average_price_for_genre(self, genre: str) -> float:
        return self.genre_aggregate(genre).average_price

    def average_rating_for_genre(self, genre: str) -> float:
        return self.genre_aggregate(genre).average_rating

    def _require_document(self) -> None:
        if self._document is None:
            raise NoDocument("No page loaded; call scrape() first")

    def _genre_first_page(self, genre: str) -> tuple[RenderedDocument, PageMetrics]:
        url = find_genre_url(self.document, genre)
        if url is None:
            raise InvalidArgument(f"Genre not found: {genre}")
        if url == self.document.base_uri:
            return self.document, self._metrics
        outcome = self._scraper.scrape(url)
        return outcome.document, outcome.data


def _text(node) -> Optional[str]:
    return node.get_text(strip=True) if node is not None else None
