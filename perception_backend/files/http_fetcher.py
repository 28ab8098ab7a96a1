"""
HTTP Fetcher: Async Document Retrieval

This module retrieves remote pages and JSON catalogs with httpx.

Every failure (network error, timeout, non-2xx status, undecodable body)
is reported through the return value, never raised:
- fetch_bytes() returns an HttpFetchResult with ok=False
- fetch_as_document() returns None
- fetch_json() returns (False, None, error)

Callers treat a failed fetch as "nothing available" and carry on.
"""

from __future__ import annotations

from dataclasses import dataclass
import codecs
from typing import Any, Dict, Optional, Tuple, Union
import json
import logging

import httpx

from .document import Document

logger = logging.getLogger(__name__)

HTML_ACCEPT = "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8"
JSON_ACCEPT = "application/ld+json,application/json;q=0.9,*/*;q=0.5"


@dataclass(frozen=True)
class HttpFetchResult:
    """
    Result of an HTTP fetch operation.

    Attributes:
        ok: True if the request succeeded (2xx status)
        status: HTTP status code (0 when no response was received)
        headers: Response headers
        content: Response body as bytes
        error: Error message if request failed
        final_url: Final URL after redirects
    """
    ok: bool
    status: int
    headers: Dict[str, str]
    content: bytes
    error: Optional[str] = None
    final_url: Optional[str] = None

    @property
    def content_type(self) -> Optional[str]:
        """Get the Content-Type header if present."""
        return self.headers.get("Content-Type") or self.headers.get("content-type")

    @property
    def content_length(self) -> int:
        return len(self.content)

    @property
    def encoding(self) -> str:
        """Charset from the Content-Type header; utf-8 when absent or unknown."""
        ct = self.content_type or ""
        for part in ct.split(";"):
            part = part.strip()
            if part.lower().startswith("charset="):
                charset = part.split("=", 1)[1].strip("\"'")
                try:
                    codecs.lookup(charset)
                except LookupError:
                    logger.debug(f"[HTTP] Unknown charset {charset!r}, decoding as utf-8")
                    return "utf-8"
                return charset
        return "utf-8"

    def text(self) -> str:
        return self.content.decode(self.encoding, errors="replace")


def _failed(error: str) -> HttpFetchResult:
    return HttpFetchResult(ok=False, status=0, headers={}, content=b"", error=error)


async def fetch_bytes(
    client: httpx.AsyncClient,
    url: Union[httpx.URL, str],
    accept: str = HTML_ACCEPT,
) -> HttpFetchResult:
    """
    GET `url` with the shared client.

    Args:
        client: Shared httpx.AsyncClient (carries timeout, headers, redirects)
        url: URL to fetch
        accept: Accept header value

    Returns:
        HttpFetchResult with response data or error information
    """
    logger.info(f"[HTTP] Fetching: {url}")

    try:
        r = await client.get(url, headers={"Accept": accept})
    except httpx.TimeoutException:
        logger.error(f"[HTTP] Timeout: {url}")
        return _failed("Timeout")
    except httpx.HTTPError as e:
        logger.error(f"[HTTP] Request error for {url}: {e}")
        return _failed(f"Request error: {e}")

    final_url = str(r.url)
    result = HttpFetchResult(
        ok=r.is_success,
        status=r.status_code,
        headers={k: v for k, v in r.headers.items()},
        content=r.content or b"",
        error=None if r.is_success else f"HTTP {r.status_code}",
        final_url=final_url if final_url != str(url) else None,
    )

    if result.ok:
        logger.info(f"[HTTP] Success: {result.status}, {result.content_length} bytes")
    else:
        logger.warning(f"[HTTP] Failed: {result.status} - {url}")

    return result


async def fetch_as_document(
    client: httpx.AsyncClient,
    url: Union[httpx.URL, str],
) -> Optional[Document]:
    """
    Fetch `url` and parse it as HTML.

    Returns:
        The parsed Document, or None on any failure
    """
    result = await fetch_bytes(client, url, accept=HTML_ACCEPT)
    if not result.ok:
        return None

    try:
        return Document.from_html(result.text(), result.final_url or str(url))
    except Exception as e:
        logger.error(f"[HTTP] Could not parse document from {url}: {e}")
        return None


async def fetch_json(
    client: httpx.AsyncClient,
    url: Union[httpx.URL, str],
) -> Tuple[bool, Optional[Any], Optional[str]]:
    """
    Fetch JSON (or JSON-LD) data.

    Returns:
        Tuple of (success, json_data, error_message)
    """
    result = await fetch_bytes(client, url, accept=JSON_ACCEPT)
    if not result.ok:
        return False, None, result.error

    try:
        data = json.loads(result.text())
        return True, data, None
    except ValueError as e:
        logger.warning(f"[HTTP] JSON parse error for {url}: {e}")
        return False, None, f"JSON parse error: {e}"


class HttpDocumentFetcher:
    """
    Document fetcher bound to one httpx.AsyncClient.

    Usage:
        async with httpx.AsyncClient() as client:
            fetcher = HttpDocumentFetcher(client)
            doc = await fetcher(httpx.URL("https://example.com/page"))
    """

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def __call__(self, url: Union[httpx.URL, str]) -> Optional[Document]:
        return await fetch_as_document(self.client, url)

    async def fetch_json(self, url: Union[httpx.URL, str]) -> Tuple[bool, Optional[Any], Optional[str]]:
        return await fetch_json(self.client, url)


def create_http_client(timeout_s: float = 10.0, user_agent: Optional[str] = None) -> httpx.AsyncClient:
    """Build the shared AsyncClient used for every outgoing fetch."""
    headers = {"User-Agent": user_agent} if user_agent else {}
    return httpx.AsyncClient(timeout=timeout_s, follow_redirects=True, headers=headers)
