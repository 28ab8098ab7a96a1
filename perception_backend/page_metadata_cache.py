"""
Page Metadata Cache: Fetch Each Page at Most Once

PageMetadataResolver turns a candidate string into page metadata:
1. Gate the candidate through the FetchPolicy (no network when denied)
2. Serve from the cache when the URL was seen before
3. Otherwise fetch the document, extract its metadata and cache it

Fetch failures return None; they never abort the caller.

The cache is keyed by the URL's canonical string, so two separately parsed
but identical URLs share an entry. By default it never evicts; a capacity
(LRU) and/or TTL can be configured.

There is no in-flight de-duplication: two resolutions racing on the same
uncached URL will both fetch.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Awaitable, Callable, Dict, Optional, Tuple, Union
import logging
import time

import httpx

from .artifacts.schema import Thing
from .fetch_policy import FetchPolicy, check_is_fetchable_url
from .files.document import Document

logger = logging.getLogger(__name__)

DocumentFetcher = Callable[[httpx.URL], Awaitable[Optional[Document]]]
MetadataExtractor = Callable[[Document, httpx.URL], Thing]


def cache_key(url: Union[httpx.URL, str]) -> str:
    """Canonical string form used as the cache key."""
    return str(httpx.URL(url) if isinstance(url, str) else url)


class PageMetadataCache:
    """
    URL -> Thing cache with optional capacity and TTL.

    Args:
        max_entries: Evict least recently used entries beyond this size (None = unbounded)
        ttl_seconds: Entries older than this are treated as missing (None = no expiry)
        clock: Monotonic time source, overridable in tests
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_entries = max_entries
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[Thing, float]]" = OrderedDict()

    def get(self, url: Union[httpx.URL, str]) -> Optional[Thing]:
        key = cache_key(url)
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self.ttl_seconds is not None and self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return value

    def set(self, url: Union[httpx.URL, str], value: Thing) -> None:
        key = cache_key(url)
        self._entries[key] = (value, self._clock())
        self._entries.move_to_end(key)
        if self.max_entries is not None:
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"[META] Evicted {evicted}")

    def __contains__(self, url: Union[httpx.URL, str]) -> bool:
        return self.get(url) is not None

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


class PageMetadataResolver:
    """
    Resolves candidate URLs to page metadata through the cache.

    Args:
        fetch_document: Async callable returning a Document or None
        extract_metadata: Callable deriving a Thing from (document, url)
        cache: PageMetadataCache to use (a fresh unbounded one by default)
    """

    def __init__(
        self,
        fetch_document: DocumentFetcher,
        extract_metadata: MetadataExtractor,
        cache: Optional[PageMetadataCache] = None,
    ):
        self._fetch_document = fetch_document
        self._extract_metadata = extract_metadata
        self.cache = cache if cache is not None else PageMetadataCache()
        self.fetch_count = 0
        self.hit_count = 0

    async def resolve_metadata(self, candidate: object, policy: FetchPolicy) -> Optional[Thing]:
        """
        Metadata for `candidate` if it is a fetchable URL, else None.

        Returns:
            Cached or freshly extracted Thing, or None if not fetchable or the fetch failed
        """
        url = check_is_fetchable_url(candidate, policy)
        if url is None:
            return None

        cached = self.cache.get(url)
        if cached is not None:
            self.hit_count += 1
            logger.debug(f"[META] Cache hit: {url}")
            return cached

        self.fetch_count += 1
        doc = await self._fetch_document(url)
        if doc is None:
            logger.warning(f"[META] No document for {url}, skipping enrichment")
            return None

        return self.record_metadata_for_document(doc, url)

    def record_metadata_for_document(self, doc: Document, url: httpx.URL) -> Thing:
        """Extract metadata from an already fetched document and cache it, replacing any entry."""
        metadata = self._extract_metadata(doc, url)
        self.cache.set(url, metadata)
        logger.info(f"[META] Cached {metadata.get('@type')} for {url}")
        return metadata

    def stats(self) -> Dict[str, int]:
        return {
            "cached_pages": len(self.cache),
            "fetches": self.fetch_count,
            "cache_hits": self.hit_count,
        }
