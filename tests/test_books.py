"""Tests for BookScraper and the books.toscrape.com extraction helpers."""

import unittest

from webscraper.books import (
    BookPageExtractor,
    BookScraper,
    page_bounds,
    parse_price,
    parse_rating,
    total_results,
)
from webscraper.document import RenderedDocument
from webscraper.errors import FetchFailure, InvalidArgument, InvalidTarget, NoDocument
from webscraper.models import LifecycleState

from fixture_fetcher import (
    BOOKS_BASE,
    HISTORICAL_FICTION_PAGE2_URL,
    HISTORICAL_FICTION_URL,
    PHILOSOPHY_URL,
    FixtureFetcher,
    book_fetcher,
)

ALL_GENRES = [
    "Travel",
    "Mystery",
    "Historical Fiction",
    "Sequential Art",
    "Classics",
    "Philosophy",
    "Romance",
]

MYSTERY_URL = BOOKS_BASE + "mystery_3/index.html"
MYSTERY_PAGE2_URL = BOOKS_BASE + "mystery_3/page-2.html"


def _listing(total, items, marker=None, next_href=None):
    """Minimal listing page with a one-genre sidebar."""
    books = "".join(
        f'<li><article class="product_pod"><p class="star-rating {rating}"></p>'
        f'<div class="product_price"><p class="price_color">{price}</p></div></article></li>'
        for price, rating in items
    )
    pager = ""
    if marker:
        pager = f'<ul class="pager"><li class="current">{marker}</li>'
        if next_href:
            pager += f'<li class="next"><a href="{next_href}">next</a></li>'
        pager += "</ul>"
    return (
        '<html><body><div class="side_categories"><ul class="nav nav-list"><li>'
        '<a href="../books_1/index.html">Books</a><ul>'
        '<li><a href="../mystery_3/index.html"> Mystery </a></li>'
        "</ul></li></ul></div>"
        f'<form class="form-horizontal"><strong>{total}</strong> results.</form>'
        f'<ol class="row">{books}</ol>{pager}</body></html>'
    )


class TestPhilosophyPage(unittest.TestCase):
    """Single-page genre: 11 entries, every price and rating parses."""

    def setUp(self):
        self.fetcher = book_fetcher()
        self.scraper = BookScraper(fetcher=self.fetcher)
        self.scraper.scrape(PHILOSOPHY_URL)

    def test_count_entries_per_page(self):
        self.assertEqual(self.scraper.count_entries_per_page(), 11)

    def test_average_price_per_page(self):
        self.assertAlmostEqual(self.scraper.average_price_per_page(), 33.558181818181815, delta=1e-4)

    def test_average_rating_per_page(self):
        self.assertAlmostEqual(self.scraper.average_rating_per_page(), 2.3636363636363638, delta=1e-4)

    def test_average_price_for_own_genre_matches_page(self):
        self.assertAlmostEqual(self.scraper.average_price_for_genre("Philosophy"), 33.55818, delta=1e-4)

    def test_average_rating_for_own_genre_matches_page(self):
        self.assertAlmostEqual(self.scraper.average_rating_for_genre("Philosophy"), 2.36364, delta=1e-4)

    def test_own_genre_reuses_loaded_page(self):
        """The sidebar link points back at the loaded page, so no second fetch happens."""
        self.scraper.average_price_for_genre("Philosophy")
        self.assertEqual(self.fetcher.calls, [PHILOSOPHY_URL])

    def test_get_all_genres_in_sidebar_order(self):
        self.assertEqual(self.scraper.get_all_genres(), ALL_GENRES)

    def test_get_all_genres_is_idempotent(self):
        self.assertEqual(self.scraper.get_all_genres(), self.scraper.get_all_genres())

    def test_total_results_for_genre(self):
        self.assertEqual(self.scraper.get_total_results_for_genre("Philosophy"), 11)

    def test_genre_name_is_trimmed(self):
        self.assertEqual(self.scraper.get_total_results_for_genre("  Philosophy "), 11)

    def test_lifecycle_done(self):
        self.assertEqual(self.scraper.lifecycle.state, LifecycleState.DONE)


class TestHistoricalFictionGenre(unittest.TestCase):
    """Two-page genre: 20 + 6 entries, authoritative total of 26."""

    def setUp(self):
        self.fetcher = book_fetcher()
        self.scraper = BookScraper(fetcher=self.fetcher)

    def test_first_page_metrics(self):
        self.scraper.scrape(HISTORICAL_FICTION_URL)
        self.assertEqual(self.scraper.count_entries_per_page(), 20)
        self.assertAlmostEqual(self.scraper.average_price_per_page(), 35.379, delta=1e-4)
        self.assertAlmostEqual(self.scraper.average_rating_per_page(), 2.95, delta=1e-4)

    def test_second_page_metrics(self):
        self.scraper.scrape(HISTORICAL_FICTION_PAGE2_URL)
        self.assertEqual(self.scraper.count_entries_per_page(), 6)
        self.assertAlmostEqual(self.scraper.average_price_per_page(), 27.861666666666667, delta=1e-4)
        self.assertAlmostEqual(self.scraper.average_rating_per_page(), 4.166666666666667, delta=1e-4)

    def test_genre_averages_span_both_pages(self):
        self.scraper.scrape(HISTORICAL_FICTION_URL)
        self.assertAlmostEqual(
            self.scraper.average_price_for_genre("Historical Fiction"), 874.75 / 26, delta=1e-4
        )
        self.assertAlmostEqual(
            self.scraper.average_rating_for_genre("Historical Fiction"), 3.230769230769231, delta=1e-4
        )

    def test_genre_aggregate_details(self):
        self.scraper.scrape(PHILOSOPHY_URL)
        aggregate = self.scraper.genre_aggregate("Historical Fiction")
        self.assertEqual(aggregate.total_results, 26)
        self.assertEqual(aggregate.pages_visited, 2)
        self.assertEqual(aggregate.entries_seen, 26)
        self.assertEqual(aggregate.rating_sum, 84)
        self.assertEqual(
            self.fetcher.calls,
            [PHILOSOPHY_URL, HISTORICAL_FICTION_URL, HISTORICAL_FICTION_PAGE2_URL],
        )

    def test_genre_aggregate_is_cached_until_next_scrape(self):
        self.scraper.scrape(HISTORICAL_FICTION_URL)
        self.scraper.average_price_for_genre("Historical Fiction")
        self.scraper.average_rating_for_genre("Historical Fiction")
        self.assertEqual(self.fetcher.calls.count(HISTORICAL_FICTION_PAGE2_URL), 1)

    def test_genre_traversal_keeps_listing_document(self):
        self.scraper.scrape(PHILOSOPHY_URL)
        self.scraper.average_price_for_genre("Historical Fiction")
        self.assertEqual(self.scraper.document.base_uri, PHILOSOPHY_URL)
        self.assertEqual(self.scraper.count_entries_per_page(), 11)

    def test_total_results_for_other_genre(self):
        self.scraper.scrape(PHILOSOPHY_URL)
        self.assertEqual(self.scraper.get_total_results_for_genre("Historical Fiction"), 26)


class TestUnknownGenre(unittest.TestCase):

    def setUp(self):
        self.fetcher = book_fetcher()
        self.scraper = BookScraper(fetcher=self.fetcher)
        self.scraper.scrape(PHILOSOPHY_URL)

    def test_averages_are_zero(self):
        self.assertEqual(self.scraper.average_price_for_genre("Cookbooks"), 0.0)
        self.assertEqual(self.scraper.average_rating_for_genre("Cookbooks"), 0.0)
        self.assertEqual(self.fetcher.calls, [PHILOSOPHY_URL])

    def test_total_results_lookup_raises(self):
        with self.assertRaises(InvalidArgument) as ctx:
            self.scraper.get_total_results_for_genre("Cookbooks")
        self.assertIn("Cookbooks", str(ctx.exception))

    def test_match_is_exact(self):
        self.assertEqual(self.scraper.average_price_for_genre("philosophy"), 0.0)


class TestPartiallyParseablePages(unittest.TestCase):
    """Unparseable entries drop out of page sums but not out of the genre denominator."""

    def setUp(self):
        page1 = _listing(
            4,
            [("£10.00", "Two"), ("£N/A", "Three"), ("£20.00", "Zero")],
            marker="Page 1 of 2",
            next_href="page-2.html",
        )
        page2 = _listing(4, [("£30.00", "One")], marker="Page 2 of 2")
        self.fetcher = FixtureFetcher({MYSTERY_URL: page1, MYSTERY_PAGE2_URL: page2})
        self.scraper = BookScraper(fetcher=self.fetcher)
        self.scraper.scrape(MYSTERY_URL)

    def test_entry_count_ignores_parse_failures(self):
        self.assertEqual(self.scraper.count_entries_per_page(), 3)

    def test_page_averages_use_parsed_entries(self):
        self.assertAlmostEqual(self.scraper.average_price_per_page(), 15.0)
        self.assertAlmostEqual(self.scraper.average_rating_per_page(), 2.5)

    def test_genre_average_uses_reported_total(self):
        self.assertAlmostEqual(self.scraper.average_price_for_genre("Mystery"), 60.0 / 4)
        self.assertAlmostEqual(self.scraper.average_rating_for_genre("Mystery"), 6 / 4)

    def test_missing_page_marker_stops_after_first_page(self):
        page = _listing(40, [("£10.00", "One")], next_href="page-2.html")
        fetcher = FixtureFetcher({MYSTERY_URL: page})
        scraper = BookScraper(fetcher=fetcher)
        scraper.scrape(MYSTERY_URL)
        aggregate = scraper.genre_aggregate("Mystery")
        self.assertEqual(aggregate.pages_visited, 1)
        self.assertEqual(fetcher.calls, [MYSTERY_URL])


class TestBookScraperLifecycle(unittest.TestCase):

    def test_queries_before_scrape_raise(self):
        scraper = BookScraper(fetcher=book_fetcher())
        with self.assertRaises(NoDocument):
            scraper.count_entries_per_page()
        with self.assertRaises(NoDocument):
            scraper.get_all_genres()

    def test_invalid_url_never_fetches(self):
        fetcher = book_fetcher()
        scraper = BookScraper(fetcher=fetcher)
        self.assertFalse(scraper.is_valid("https://example.com/books"))
        with self.assertRaises(InvalidTarget):
            scraper.scrape("https://example.com/books")
        self.assertEqual(fetcher.calls, [])
        self.assertEqual(scraper.lifecycle.state, LifecycleState.FAILED)

    def test_fetch_failure_propagates(self):
        url = BOOKS_BASE + "travel_2/index.html"
        fetcher = FixtureFetcher({url: TimeoutError("page load timed out")})
        scraper = BookScraper(fetcher=fetcher)
        with self.assertRaises(FetchFailure) as ctx:
            scraper.scrape(url)
        self.assertIsInstance(ctx.exception.cause, TimeoutError)
        self.assertEqual(scraper.lifecycle.state, LifecycleState.FAILED)

    def test_new_scrape_replaces_document(self):
        scraper = BookScraper(fetcher=book_fetcher())
        scraper.scrape(PHILOSOPHY_URL)
        first = scraper.document
        scraper.scrape(HISTORICAL_FICTION_URL)
        self.assertIsNot(first, scraper.document)
        self.assertEqual(first.base_uri, PHILOSOPHY_URL)
        self.assertEqual(scraper.count_entries_per_page(), 20)


class TestExtractionHelpers(unittest.TestCase):

    def test_parse_price(self):
        self.assertEqual(parse_price("£51.77"), 51.77)
        self.assertEqual(parse_price(" Â£51.77 "), 51.77)
        self.assertEqual(parse_price("$3"), 3.0)
        self.assertIsNone(parse_price("£N/A"))
        self.assertIsNone(parse_price("£"))
        self.assertIsNone(parse_price(""))
        self.assertIsNone(parse_price(None))

    def test_parse_rating(self):
        self.assertEqual(parse_rating(["star-rating", "One"]), 1)
        self.assertEqual(parse_rating(["star-rating", "Five"]), 5)
        self.assertIsNone(parse_rating(["star-rating", "Zero"]))
        self.assertIsNone(parse_rating(["star-rating"]))
        self.assertIsNone(parse_rating(None))

    def test_page_bounds(self):
        doc = RenderedDocument.parse('<li class="current"> Page 3 of 7 </li>', PHILOSOPHY_URL)
        self.assertEqual(page_bounds(doc), (3, 7))

    def test_page_bounds_defaults(self):
        self.assertEqual(page_bounds(RenderedDocument.parse("<p></p>", PHILOSOPHY_URL)), (1, 1))
        garbled = RenderedDocument.parse('<li class="current">Page ? of ?</li>', PHILOSOPHY_URL)
        self.assertEqual(page_bounds(garbled), (1, 1))

    def test_total_results_unparseable_is_zero(self):
        doc = RenderedDocument.parse('<form class="form-horizontal"><strong>many</strong></form>', PHILOSOPHY_URL)
        self.assertEqual(total_results(doc), 0)

    def test_empty_page_metrics(self):
        metrics = BookPageExtractor().extract(RenderedDocument.parse("<html></html>", PHILOSOPHY_URL))
        self.assertEqual(metrics.entry_count, 0)
        self.assertEqual(metrics.average_price, 0.0)
        self.assertEqual(metrics.average_rating, 0.0)


if __name__ == "__main__":
    unittest.main()
