"""
Artifact Dealer: Tracks What Is Currently Nearby

Each detection event updates the set of visible markers / images (or the
current location), recomputes the relevant artifacts across every store,
and reports the difference from the previous state as a NearbyResultDelta.

An artifact is never reported in both `found` and `lost` for one event.
"""

from __future__ import annotations

from typing import Dict, List, Optional
import logging

from .artifact_store import ArtifactStore
from .schema import (
    ARArtifact,
    DetectedImage,
    GeoCoordinates,
    Marker,
    NearbyResult,
    NearbyResultDelta,
)

logger = logging.getLogger(__name__)


class ArtifactDealer:
    """Computes found / lost deltas for detection events."""

    def __init__(self):
        self._stores: List[ArtifactStore] = []
        self._markers: Dict[str, Marker] = {}
        self._images: Dict[str, DetectedImage] = {}
        self._geo: Optional[GeoCoordinates] = None
        self._nearby: Dict[int, NearbyResult] = {}

    def add_artifact_store(self, store: ArtifactStore) -> None:
        self._stores.append(store)

    async def marker_found(self, marker: Marker) -> NearbyResultDelta:
        self._markers[marker.value] = marker
        return self._update("marker_found")

    async def marker_lost(self, marker: Marker) -> NearbyResultDelta:
        self._markers.pop(marker.value, None)
        return self._update("marker_lost")

    async def image_found(self, image: DetectedImage) -> NearbyResultDelta:
        self._images[image.id] = image
        return self._update("image_found")

    async def image_lost(self, image: DetectedImage) -> NearbyResultDelta:
        self._images.pop(image.id, None)
        return self._update("image_lost")

    async def update_geolocation(self, coords: GeoCoordinates) -> NearbyResultDelta:
        self._geo = coords
        return self._update("geolocation")

    @property
    def nearby(self) -> List[NearbyResult]:
        return list(self._nearby.values())

    def _relevant_artifacts(self) -> List[ARArtifact]:
        relevant: List[ARArtifact] = []
        seen = set()
        for store in self._stores:
            for artifact in store.find_relevant_artifacts(
                self._markers.values(), self._images.values(), self._geo
            ):
                if id(artifact) not in seen:
                    seen.add(id(artifact))
                    relevant.append(artifact)
        return relevant

    def _update(self, event: str) -> NearbyResultDelta:
        current = {id(a): a for a in self._relevant_artifacts()}
        delta = NearbyResultDelta()

        for key, artifact in current.items():
            if key not in self._nearby:
                result = NearbyResult.for_artifact(artifact)
                self._nearby[key] = result
                delta.found.append(result)

        for key in list(self._nearby):
            if key not in current:
                delta.lost.append(self._nearby.pop(key))

        logger.debug(
            f"[DEALER] {event}: +{len(delta.found)} -{len(delta.lost)} (nearby={len(self._nearby)})"
        )
        return delta
