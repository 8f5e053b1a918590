from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag


@dataclass(frozen=True)
class RenderedDocument:
    """Parsed HTML of a rendered page plus the URI relative links resolve against.

    Produced once per fetch and treated as read-only by every consumer.
    """

    soup: BeautifulSoup
    base_uri: str

    @classmethod
    def parse(cls, html: str, base_uri: str) -> "RenderedDocument":
        return cls(soup=BeautifulSoup(html or "", "html.parser"), base_uri=base_uri)

    def select(self, css: str) -> list[Tag]:
        return list(self.soup.select(css))

    def select_one(self, css: str) -> Optional[Tag]:
        return self.soup.select_one(css)

    def text_of(self, css: str) -> Optional[str]:
        node = self.select_one(css)
        if node is None:
            return None
        return node.get_text(strip=True)

    def abs_url(self, tag: Optional[Tag], attr: str = "href") -> str:
        """Absolute form of a tag attribute, or "" when the tag or value is missing."""
        if tag is None:
            return ""
        value = tag.get(attr)
        if not isinstance(value, str) or not value.strip():
            return ""
        return urljoin(self.base_uri, value.strip())
