from __future__ import annotations

import logging
from typing import Callable, Dict, Optional, Union

from .books import BookScraper
from .fred import FredSearchScraper
from .models import ScraperConfig, ScraperVariant

VariantScraper = Union[BookScraper, FredSearchScraper]
ScraperBuilder = Callable[[ScraperConfig, Optional[logging.Logger]], VariantScraper]


def _build_books(config: ScraperConfig, logger: Optional[logging.Logger]) -> BookScraper:
    return BookScraper(config, logger=logger)


def _build_fred(config: ScraperConfig, logger: Optional[logging.Logger]) -> FredSearchScraper:
    return FredSearchScraper(config, logger=logger)


class ScraperFactory:
    """Maps each selectable scraper variant to the function that builds it.

    Only top-level variants are selectable; child scrapers are created by
    their parent."""

    _BUILDERS: Dict[ScraperVariant, ScraperBuilder] = {
        ScraperVariant.BOOKS: _build_books,
        ScraperVariant.FRED: _build_fred,
    }
    _DOWNLOADING = frozenset({ScraperVariant.FRED})

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger
        self._builders: Dict[ScraperVariant, ScraperBuilder] = dict(self._BUILDERS)

    @property
    def variants(self) -> list[ScraperVariant]:
        return list(self._builders)

    @staticmethod
    def resolve(variant: Union[str, ScraperVariant]) -> ScraperVariant:
        try:
            return ScraperVariant(variant)
        except ValueError:
            raise ValueError(f"Unknown scraper variant: {variant}") from None

    def requires_download_dir(self, variant: Union[str, ScraperVariant]) -> bool:
        return self.resolve(variant) in self._DOWNLOADING

    def create_scraper(
        self,
        variant: Union[str, ScraperVariant],
        config: Optional[ScraperConfig] = None,
    ) -> VariantScraper:
        resolved = self.resolve(variant)
        builder = self._builders.get(resolved)
        if builder is None:
            raise ValueError(f"Unknown scraper variant: {variant}")
        return builder(config or ScraperConfig(), self._logger)
