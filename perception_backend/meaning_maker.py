"""
MeaningMaker: Binds Detection Events to Artifact Content

MeaningMaker owns one ArtifactLoader, one LocalArtifactStore and one
ArtifactDealer for its whole lifetime, plus the page metadata cache.

On top of exposing the artifact components it:
- Loads artifacts embedded in the host page on init()
- Indexes pages when a scanned marker is itself a fetchable URL
- Enriches found content with metadata from the pages it points at
- Only ever fetches URLs the active FetchPolicy allows

Usage:
    maker = MeaningMaker(settings=Settings(origin="https://example.com"))
    await maker.init()
    delta = await maker.marker_found(Marker(value="https://example.com/poster"))
    for result in delta.found:
        print(result.content)
    await maker.aclose()
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union
import logging

import httpx

from .artifacts.artifact_dealer import ArtifactDealer
from .artifacts.artifact_loader import ArtifactLoader
from .artifacts.artifact_store import LocalArtifactStore
from .artifacts.page_metadata import extract_page_metadata
from .artifacts.schema import (
    ARArtifact,
    DetectableImage,
    DetectedImage,
    GeoCoordinates,
    Marker,
    NearbyResultDelta,
)
from .enrichment import enrich_results
from .fetch_policy import FetchPolicy, PolicyLike, check_is_fetchable_url, normalize_policy, parse_absolute_url
from .files.document import Document
from .files.http_fetcher import HttpDocumentFetcher, create_http_client
from .page_metadata_cache import (
    DocumentFetcher,
    MetadataExtractor,
    PageMetadataCache,
    PageMetadataResolver,
)
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


class MeaningMaker:
    """
    Public entry point turning detection events into NearbyResultDeltas.

    Every collaborator can be injected; anything not given is built from
    `settings` (and a shared httpx.AsyncClient).
    """

    def __init__(
        self,
        *,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        fetch_document: Optional[DocumentFetcher] = None,
        extract_metadata: MetadataExtractor = extract_page_metadata,
        loader: Optional[ArtifactLoader] = None,
        store: Optional[LocalArtifactStore] = None,
        dealer: Optional[ArtifactDealer] = None,
        cache: Optional[PageMetadataCache] = None,
    ):
        self.settings = settings or get_settings()

        self._owns_client = client is None
        self.client = client or create_http_client(self.settings.fetch_timeout_s, self.settings.user_agent)
        http = HttpDocumentFetcher(self.client)

        self._fetch_document = fetch_document or http
        self.artloader = loader or ArtifactLoader(fetch_json=http.fetch_json)
        self.artstore = store or LocalArtifactStore()
        self.artdealer = dealer or ArtifactDealer()
        self.artdealer.add_artifact_store(self.artstore)

        if cache is None:
            cache = PageMetadataCache(
                max_entries=self.settings.cache_max_entries,
                ttl_seconds=self.settings.cache_ttl_s,
            )
        self.metadata = PageMetadataResolver(self._fetch_document, extract_metadata, cache)

        logger.info(
            f"[MEANING] Initialized (origin={self.settings.origin or 'none'}, "
            f"cache_max={cache.max_entries}, cache_ttl={cache.ttl_seconds})"
        )

    # ============================================================
    # ARTIFACT LOADING
    # ============================================================

    async def init(self, doc: Optional[Document] = None) -> List[ARArtifact]:
        """
        Load artifacts embedded in the host document.

        Args:
            doc: Host document; when omitted the configured host_url is fetched

        Returns:
            Artifacts added to the store
        """
        if doc is None:
            host_url = parse_absolute_url(self.settings.host_url)
            if host_url is None:
                logger.info("[MEANING] No host page configured, starting with an empty catalog")
                return []
            doc = await self._fetch_document(host_url)
            if doc is None:
                logger.warning(f"[MEANING] Host page unavailable: {host_url}")
                return []

        artifacts = await self.artloader.from_document(doc)
        self._save_artifacts(artifacts)
        return artifacts

    async def load_artifacts_from_jsonld_url(self, url: Union[httpx.URL, str]) -> List[ARArtifact]:
        """
        Load artifacts from a JSON-LD file, typically an "artifact sitemap" for a whole site.
        """
        artifacts = await self.artloader.from_json_url(url)
        self._save_artifacts(artifacts)
        return artifacts

    async def load_artifacts_from_html_url(self, url: Union[httpx.URL, str]) -> List[ARArtifact]:
        """
        Index a single HTML page: cache its metadata and load its embedded artifacts.

        Returns:
            Artifacts added to the store ([] if the page could not be fetched)
        """
        if isinstance(url, str):
            url = httpx.URL(url)
        doc = await self._fetch_document(url)
        if doc is None:
            return []
        self.metadata.record_metadata_for_document(doc, url)

        artifacts = await self.artloader.from_document(doc)
        self._save_artifacts(artifacts)
        return artifacts

    async def get_detectable_images(self) -> List[DetectableImage]:
        """Every image currently worth detecting, each with its known media encodings."""
        return self.artstore.get_detectable_images()

    # ============================================================
    # DETECTION EVENTS
    # ============================================================

    async def marker_found(self, marker: Marker, should_fetch_from: PolicyLike = None) -> NearbyResultDelta:
        """
        `marker` is visible. If its value is a fetchable URL the page is indexed
        first, so artifacts declared there are matched by this same event.
        """
        policy = self._normalize_policy(should_fetch_from)

        url = check_is_fetchable_url(marker.value, policy)
        if url is not None:
            await self.load_artifacts_from_html_url(url)

        results = await self.artdealer.marker_found(marker)
        results.found = await enrich_results(results.found, policy, self.metadata)
        return results

    async def marker_lost(self, marker: Marker) -> NearbyResultDelta:
        return await self.artdealer.marker_lost(marker)

    async def update_geolocation(
        self, coords: GeoCoordinates, should_fetch_from: PolicyLike = None
    ) -> NearbyResultDelta:
        policy = self._normalize_policy(should_fetch_from)

        results = await self.artdealer.update_geolocation(coords)
        results.found = await enrich_results(results.found, policy, self.metadata)
        return results

    async def image_found(self, image: DetectedImage, should_fetch_from: PolicyLike = None) -> NearbyResultDelta:
        policy = self._normalize_policy(should_fetch_from)

        results = await self.artdealer.image_found(image)
        results.found = await enrich_results(results.found, policy, self.metadata)
        return results

    async def image_lost(self, image: DetectedImage) -> NearbyResultDelta:
        return await self.artdealer.image_lost(image)

    # ============================================================
    # HOUSEKEEPING
    # ============================================================

    def stats(self) -> Dict[str, Any]:
        stats: Dict[str, Any] = {"origin": self.settings.origin or None}
        stats.update(self.artstore.stats())
        stats.update(self.metadata.stats())
        stats["nearby"] = len(self.artdealer.nearby)
        return stats

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    def _normalize_policy(self, should_fetch_from: PolicyLike) -> FetchPolicy:
        return normalize_policy(should_fetch_from, default_origin=self.settings.origin)

    def _save_artifacts(self, artifacts: List[ARArtifact]) -> None:
        for artifact in artifacts:
            self.artstore.add_artifact(artifact)
        if artifacts:
            logger.info(f"[MEANING] Saved {len(artifacts)} artifact(s), catalog size={len(self.artstore)}")
