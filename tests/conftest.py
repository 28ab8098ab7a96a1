# conftest.py
# Shared fixtures: an in-memory document fetcher that counts calls, an httpx
# MockTransport client, and HTML builders for pages carrying JSON-LD.

import json
import os
from typing import Dict, List, Optional

import httpx
import pytest

# Keep test runs from writing rotating log files into the working directory.
os.environ["PERCEPTION_LOG_FILE"] = ""
os.environ.pop("PERCEPTION_ORIGIN", None)
os.environ.pop("PERCEPTION_HOST_URL", None)

from perception_backend.files.document import Document  # noqa: E402
from perception_backend.settings import Settings, reset_settings  # noqa: E402

reset_settings()

ORIGIN = "https://example.com"


def html_page(*json_ld_blocks, title: str = "", meta: Optional[Dict[str, str]] = None) -> str:
    """Build an HTML page with the given JSON-LD blocks and <meta property=...> tags."""
    head = []
    if title:
        head.append(f"<title>{title}</title>")
    for prop, content in (meta or {}).items():
        head.append(f'<meta property="{prop}" content="{content}">')
    for block in json_ld_blocks:
        head.append(f'<script type="application/ld+json">{json.dumps(block)}</script>')
    return f"<html><head>{''.join(head)}</head><body></body></html>"


def artifact(target: dict, content) -> dict:
    return {"@type": "ARArtifact", "arTarget": target, "arContent": content}


def barcode(text: str) -> dict:
    return {"@type": "Barcode", "text": text}


class FakeFetcher:
    """
    Document fetcher serving canned HTML by URL string.

    Unknown URLs fail (return None). Every call is recorded in `calls`.
    """

    def __init__(self, pages: Optional[Dict[str, str]] = None):
        self.pages: Dict[str, str] = dict(pages or {})
        self.calls: List[str] = []

    async def __call__(self, url) -> Optional[Document]:
        key = str(url)
        self.calls.append(key)
        html = self.pages.get(key)
        if html is None:
            return None
        return Document.from_html(html, key)

    def count(self, url: str) -> int:
        return self.calls.count(url)


def mock_client(routes: Optional[Dict[str, httpx.Response]] = None) -> httpx.AsyncClient:
    """AsyncClient whose transport answers from `routes` (404 for anything else)."""
    routes = routes or {}

    def handler(request: httpx.Request) -> httpx.Response:
        response = routes.get(str(request.url))
        if response is None:
            return httpx.Response(404, text="not found")
        # Fresh copy so a route can be served more than once
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


@pytest.fixture
def settings() -> Settings:
    return Settings(origin=ORIGIN, log_file=None)


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()
