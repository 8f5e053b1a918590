"""Rendered-page scraping engine.

Loads pages in a real browser, parses the rendered HTML, aggregates listing
facts across pagination, and delegates per-item scrapes that download files.

Key modules:
    document        -- RenderedDocument (parsed HTML + base URI)
    validators      -- PrefixValidator and per-site URL prefixes
    fetcher         -- Fetcher, SeleniumFetcher, ready conditions
    strategies      -- ordered click strategies for stubborn controls
    base            -- Scraper lifecycle (validate -> fetch -> parse), Extractor
    books           -- BookScraper: per-page and per-genre price/rating averages
    fred            -- FredSearchScraper / SeriesScraper: delegated CSV downloads
    downloader      -- FileDownloader (HTTP GET to a local file)
    assisted        -- AssistedSession for manual URL capture
    controller      -- BrowserSlot and ScrapeController (serialized scrapes)
    factory         -- ScraperFactory: variant tag -> builder
    storage         -- StorageBase and JsonlStorage for scrape results
    models          -- config, targets, metrics and result dataclasses
    errors          -- engine exception taxonomy
"""
