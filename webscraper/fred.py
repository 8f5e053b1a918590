"""FRED search results -> per-series CSV downloads."""

from __future__ import annotations

import logging
import os
from typing import Callable, Optional
from urllib.parse import urlsplit

from .base import Extractor, Scraper
from .document import RenderedDocument
from .downloader import FileDownloader
from .errors import InvalidArgument
from .fetcher import ClickThenSettle, Fetcher, SeleniumFetcher
from .logging_utils import log_event, resolve_logger
from .models import ChildOutcome, ChildStatus, DelegationSummary, ScraperConfig, ScraperVariant
from .strategies import default_click_strategies
from .validators import FRED_SEARCH_PREFIX, FRED_SERIES_PREFIX, PrefixValidator

SERIES_LINK_SELECTOR = 'a[href^="/series/"]'
CSV_LINK_SELECTOR = "a#download-data-csv"
DOWNLOAD_BUTTON_ID = "download-button"
OUTPUT_EXTENSION = ".csv"


def series_filename(base_uri: str) -> str:
    """Output file name from the last path segment of a series page URL."""
    segment = urlsplit(base_uri).path.rsplit("/", 1)[-1]
    if not segment:
        raise InvalidArgument(f"Cannot infer filename from URL: {base_uri}")
    return segment + OUTPUT_EXTENSION


class SeriesLinkExtractor(Extractor):
    """Absolute URLs of every series link on a search results page, in page order."""

    def extract(self, document: RenderedDocument) -> list[str]:
        urls: list[str] = []
        seen: set[str] = set()
        for link in document.select(SERIES_LINK_SELECTOR):
            url = document.abs_url(link)
            if url and url not in seen:
                seen.add(url)
                urls.append(url)
        return urls


class CsvLinkExtractor(Extractor):
    def extract(self, document: RenderedDocument) -> Optional[str]:
        return document.abs_url(document.select_one(CSV_LINK_SELECTOR)) or None


def series_fetcher(config: ScraperConfig, logger: Optional[logging.Logger] = None) -> SeleniumFetcher:
    """Fetcher that clicks the download button and waits for the CSV link to appear."""
    ready = ClickThenSettle(
        DOWNLOAD_BUTTON_ID,
        settle_s=config.reveal_delay_s,
        strategies=default_click_strategies(scroll_pause_s=config.scroll_pause_s),
        logger=logger,
    )
    return SeleniumFetcher(config, ready=ready, logger=logger)


class SeriesScraper:
    """Child scraper: one series page, one CSV download."""

    def __init__(
        self,
        config: ScraperConfig,
        downloader: FileDownloader,
        fetcher: Optional[Fetcher] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config
        self._downloader = downloader
        self._logger = resolve_logger(logger, __name__)
        self._scraper = Scraper(
            variant=ScraperVariant.FRED_SERIES,
            validator=PrefixValidator(FRED_SERIES_PREFIX),
            fetcher=fetcher if fetcher is not None else series_fetcher(config, logger),
            extractor=CsvLinkExtractor(),
            logger=logger,
        )

    @property
    def lifecycle(self) -> Scraper:
        return self._scraper

    def is_valid(self, url: Optional[str]) -> bool:
        return self._scraper.is_valid(url)

    def scrape(self, url: str) -> ChildOutcome:
        outcome = self._scraper.scrape(url)
        csv_url = outcome.data
        if not csv_url:
            log_event(self._logger, logging.WARNING, "csv_link_missing", url=url)
            return ChildOutcome(url=url, status=ChildStatus.SKIPPED, error="no CSV link on page")

        dest_path = os.path.join(self._config.download_dir, series_filename(outcome.document.base_uri))
        log_event(self._logger, logging.INFO, "csv_download_started", url=url, csv_url=csv_url, dest_path=dest_path)
        if not self._downloader.download(csv_url, dest_path):
            return ChildOutcome(url=url, status=ChildStatus.FAILED, path=dest_path, error="download failed")
        return ChildOutcome(url=url, status=ChildStatus.DOWNLOADED, path=dest_path)


class FredSearchScraper:
    """Listing scraper that delegates each discovered series to its own SeriesScraper.

    Children run one after another; a failing child is logged and counted,
    never propagated, so its siblings still run."""

    def __init__(
        self,
        config: Optional[ScraperConfig] = None,
        downloader: Optional[FileDownloader] = None,
        fetcher: Optional[Fetcher] = None,
        child_fetcher: Optional[Fetcher] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._config = config or ScraperConfig()
        self._logger = resolve_logger(logger, __name__)
        self._downloader = downloader or FileDownloader(
            timeout_s=self._config.download_timeout_s,
            user_agent=self._config.user_agent,
            logger=logger,
        )
        self._child_fetcher = child_fetcher
        self._child_logger = logger
        self._scraper = Scraper(
            variant=ScraperVariant.FRED,
            validator=PrefixValidator(FRED_SEARCH_PREFIX),
            fetcher=fetcher if fetcher is not None else SeleniumFetcher(self._config, logger=logger),
            extractor=SeriesLinkExtractor(),
            logger=logger,
        )

    @property
    def lifecycle(self) -> Scraper:
        return self._scraper

    def is_valid(self, url: Optional[str]) -> bool:
        return self._scraper.is_valid(url)

    def new_child(self) -> SeriesScraper:
        return SeriesScraper(
            self._config,
            self._downloader,
            fetcher=self._child_fetcher,
            logger=self._child_logger,
        )

    def scrape(self, url: str, on_child: Optional[Callable[[ChildOutcome], None]] = None) -> DelegationSummary:
        series_urls = self._scraper.scrape(url).data
        log_event(self._logger, logging.INFO, "series_discovered", url=url, count=len(series_urls))

        outcomes: list[ChildOutcome] = []
        for series_url in series_urls:
            child = self.new_child()
            try:
                outcome = child.scrape(series_url)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    self._logger,
                    logging.ERROR,
                    "series_scrape_failed",
                    url=series_url,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                outcome = ChildOutcome(url=series_url, status=ChildStatus.FAILED, error=str(exc))
            outcomes.append(outcome)
            if on_child is not None:
                on_child(outcome)

        summary = DelegationSummary(listing_url=url, outcomes=tuple(outcomes))
        log_event(
            self._logger,
            logging.INFO,
            "delegation_complete",
            url=url,
            attempted=summary.attempted,
            succeeded=summary.succeeded,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return summary
