from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional

from webscraper.assisted import AssistedSession
from webscraper.base import run_to_result
from webscraper.books import BookScraper
from webscraper.controller import ScrapeController
from webscraper.errors import AlreadyActive, InvalidTarget
from webscraper.factory import ScraperFactory
from webscraper.fred import FredSearchScraper
from webscraper.models import DEFAULT_USER_AGENT, ChildStatus, LifecycleState, ScrapeResult, ScraperConfig, ScraperVariant
from webscraper.storage import JsonlStorage

logger = logging.getLogger("webscraper.main")


def _build_config(args: argparse.Namespace) -> ScraperConfig:
    overrides: dict[str, Any] = {
        "user_agent": args.user_agent,
        "timeout_s": args.timeout,
        "reveal_delay_s": args.reveal_delay,
        "headless": not args.show_browser,
    }
    if args.download_dir:
        overrides["download_dir"] = args.download_dir
    return ScraperConfig(**overrides)


def scrape_books(scraper: BookScraper, url: str, genres: list[str]) -> dict[str, Any]:
    metrics = scraper.scrape(url)
    data: dict[str, Any] = {
        "entries": metrics.entry_count,
        "average_price": metrics.average_price,
        "average_rating": metrics.average_rating,
        "genres": scraper.get_all_genres(),
    }
    if genres:
        data["genre_averages"] = {
            genre: {
                "average_price": scraper.average_price_for_genre(genre),
                "average_rating": scraper.average_rating_for_genre(genre),
            }
            for genre in genres
        }
    return data


def scrape_fred(scraper: FredSearchScraper, url: str) -> dict[str, Any]:
    summary = scraper.scrape(url)
    return {
        "attempted": summary.attempted,
        "succeeded": summary.succeeded,
        "skipped": summary.skipped,
        "failed": summary.failed,
        "files": [o.path for o in summary.outcomes if o.status is ChildStatus.DOWNLOADED],
    }


def capture_url(config: ScraperConfig) -> Optional[str]:
    """Open a visible browser, let the user navigate, and return where they ended up."""
    session = AssistedSession(config)
    session.start()
    try:
        input("Assisted mode: navigate to the target page, then press Enter here to capture the URL... ")
        return session.capture()
    finally:
        session.stop()


def _failed_result(variant: ScraperVariant, url: str, exc: Exception) -> ScrapeResult:
    return ScrapeResult(
        variant=variant.value,
        url=url,
        success=False,
        state=LifecycleState.FAILED.value,
        latency_ms=0,
        data=None,
        error_type=type(exc).__name__,
        error=str(exc),
    )


def run_scrape(variant: ScraperVariant, url: str, config: ScraperConfig, genres: list[str]) -> ScrapeResult:
    factory = ScraperFactory(logger=logger)
    scraper = factory.create_scraper(variant, config)
    if not scraper.is_valid(url):
        return _failed_result(variant, url, InvalidTarget(url, variant.value))

    if isinstance(scraper, BookScraper):
        job = lambda: scrape_books(scraper, url, genres)  # noqa: E731
    else:
        job = lambda: scrape_fred(scraper, url)  # noqa: E731

    controller = ScrapeController()
    controller.start()
    try:
        future = controller.submit(run_to_result, variant, url, job)
        try:
            return future.result()
        except AlreadyActive as exc:
            return _failed_result(variant, url, exc)
    finally:
        controller.stop(wait=True)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Scrape rendered web pages.")
    parser.add_argument("--variant", choices=[v.value for v in ScraperFactory().variants], required=True)
    parser.add_argument("--url", help="Target URL (omit with --assisted)")
    parser.add_argument("--assisted", action="store_true", help="Capture the URL from a manually driven browser")
    parser.add_argument("--genre", action="append", default=[], help="Genre to average (books; repeatable)")
    parser.add_argument("--download-dir", default=None, help="Destination folder for downloaded files")
    parser.add_argument("--results", default=None, help="Append the result to this JSONL file")

    parser.add_argument("--timeout", type=float, default=15.0, help="Page load timeout in seconds")
    parser.add_argument("--reveal-delay", type=float, default=3.0, help="Settle delay after clicking a control")
    parser.add_argument("--user-agent", default=DEFAULT_USER_AGENT)
    parser.add_argument("--show-browser", action="store_true", help="Run the scraping browser non-headless")
    parser.add_argument("--log-level", default="INFO")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    variant = ScraperFactory.resolve(args.variant)
    config = _build_config(args)

    url = args.url
    if args.assisted:
        url = capture_url(config)
        if url:
            print(f"URL captured: {url}")
    if not url:
        print("No URL given. Use --url or --assisted.")
        return 2

    if ScraperFactory().requires_download_dir(variant) and not args.download_dir:
        print(f"Downloading into default folder: {config.download_dir}")

    result = run_scrape(variant, url, config, args.genre)

    if args.results:
        storage = JsonlStorage(args.results)
        storage.write(result)
        storage.close()

    print(
        f"variant={result.variant} success={result.success} state={result.state} "
        f"latency_ms={result.latency_ms} error={result.error_type}"
    )
    if result.success:
        print(result.data)
    else:
        print(f"error: {result.error}")
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
