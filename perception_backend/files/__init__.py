"""
Files Module: Remote Document Retrieval

Components:
- Document: Parsed HTML page plus its URL
- HttpFetchResult: Outcome of a single HTTP request
- fetch_as_document / fetch_json: Async fetch helpers (httpx)
- HttpDocumentFetcher: Document fetcher bound to a shared client

Failures never raise; they surface as None / ok=False.
"""

from .document import Document
from .http_fetcher import (
    HttpFetchResult,
    HttpDocumentFetcher,
    create_http_client,
    fetch_as_document,
    fetch_bytes,
    fetch_json,
)

__all__ = [
    "Document",
    "HttpFetchResult",
    "HttpDocumentFetcher",
    "create_http_client",
    "fetch_as_document",
    "fetch_bytes",
    "fetch_json",
]
