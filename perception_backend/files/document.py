"""
Document: A Parsed HTML Page and the URL It Came From
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List
import json
import logging

from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


@dataclass
class Document:
    """
    A navigable HTML document.

    Attributes:
        url: Final URL of the document (after redirects)
        soup: Parsed BeautifulSoup tree
    """
    url: str
    soup: BeautifulSoup

    @staticmethod
    def from_html(html: str, url: str) -> "Document":
        """Parse raw HTML into a Document."""
        return Document(url=url, soup=BeautifulSoup(html, "html.parser"))

    def json_ld_blocks(self) -> List[Any]:
        """
        Return the decoded contents of every <script type="application/ld+json"> block.

        Blocks that are empty or fail to decode are skipped.
        """
        blocks = []
        for script in self.soup.find_all("script", type="application/ld+json"):
            text = script.string or script.get_text()
            if not text or not text.strip():
                continue
            try:
                blocks.append(json.loads(text))
            except (json.JSONDecodeError, TypeError) as e:
                logger.debug(f"[DOC] Skipping malformed JSON-LD in {self.url}: {e}")
        return blocks

    def meta_content(self, *, name: str = None, prop: str = None) -> str:
        """Content of the first <meta name=...> or <meta property=...> tag, or ""."""
        if prop:
            tag = self.soup.find("meta", property=prop)
        else:
            tag = self.soup.find("meta", attrs={"name": name})
        if tag is None:
            return ""
        return (tag.get("content") or "").strip()

    @property
    def title(self) -> str:
        tag = self.soup.find("title")
        return tag.get_text(strip=True) if tag else ""

    @property
    def canonical_url(self) -> str:
        tag = self.soup.find("link", rel="canonical")
        if tag is None:
            return ""
        return (tag.get("href") or "").strip()
