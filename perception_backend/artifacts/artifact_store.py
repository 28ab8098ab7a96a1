"""
Artifact Store: In-Memory Catalog of ARArtifacts

The store answers two questions:
- Which artifacts are relevant given the markers / images currently visible?
- Which images are worth running detection for at all?

Target matching:
- Barcode: target "text" equals a visible marker's value
- ARImageTarget: target "name" (or "@id") equals a detected image's id

Nothing is persisted; the catalog lives as long as the process.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Protocol
import logging

from .schema import (
    BARCODE_TARGET_TYPE,
    IMAGE_TARGET_TYPE,
    ARArtifact,
    DetectableImage,
    DetectedImage,
    GeoCoordinates,
    Marker,
)

logger = logging.getLogger(__name__)


class ArtifactStore(Protocol):
    """
    Abstract store interface consumed by the ArtifactDealer and MeaningMaker.
    """

    def add_artifact(self, artifact: ARArtifact) -> None:
        ...

    def find_relevant_artifacts(
        self,
        markers: Iterable[Marker],
        images: Iterable[DetectedImage],
        geo: Optional[GeoCoordinates] = None,
    ) -> List[ARArtifact]:
        ...

    def get_detectable_images(self) -> List[DetectableImage]:
        ...


def image_target_id(target: Dict[str, Any]) -> Optional[str]:
    value = target.get("name") or target.get("@id")
    return str(value) if value else None


def _media_from_image(image: Any) -> List[Dict[str, str]]:
    """Normalize an ARImageTarget "image" (URL, ImageObject or list of either) to media dicts."""
    if isinstance(image, str):
        return [{"url": image}]
    if isinstance(image, dict):
        url = image.get("contentUrl") or image.get("url")
        if not url:
            return []
        media = {"url": url}
        if image.get("encodingFormat"):
            media["encodingFormat"] = image["encodingFormat"]
        return [media]
    if isinstance(image, list):
        media = []
        for item in image:
            media.extend(_media_from_image(item))
        return media
    return []


class LocalArtifactStore:
    """
    Process-local artifact store.

    Artifacts are indexed by marker text and image id on insertion so lookups
    per detection event stay cheap.
    """

    def __init__(self):
        self._artifacts: List[ARArtifact] = []
        self._by_marker: Dict[str, List[ARArtifact]] = {}
        self._by_image: Dict[str, List[ARArtifact]] = {}

    def add_artifact(self, artifact: ARArtifact) -> None:
        """Add an artifact. Adding the same artifact object twice is a no-op."""
        if any(a is artifact for a in self._artifacts):
            return
        self._artifacts.append(artifact)

        target_type = artifact.target_type
        if target_type == BARCODE_TARGET_TYPE and artifact.target.get("text"):
            self._by_marker.setdefault(str(artifact.target["text"]), []).append(artifact)
        elif target_type == IMAGE_TARGET_TYPE:
            image_id = image_target_id(artifact.target)
            if image_id:
                self._by_image.setdefault(image_id, []).append(artifact)
        else:
            logger.debug(f"[STORE] Artifact with unindexed target type {target_type!r}")

        logger.debug(f"[STORE] Added artifact ({target_type}), total={len(self._artifacts)}")

    def find_relevant_artifacts(
        self,
        markers: Iterable[Marker],
        images: Iterable[DetectedImage],
        geo: Optional[GeoCoordinates] = None,
    ) -> List[ARArtifact]:
        """
        Artifacts whose target matches any visible marker or image.

        Geolocation is accepted for interface compatibility; no target type
        in this store is location based, so it does not affect the result.
        """
        relevant: List[ARArtifact] = []
        seen = set()
        for marker in markers:
            for artifact in self._by_marker.get(marker.value, []):
                if id(artifact) not in seen:
                    seen.add(id(artifact))
                    relevant.append(artifact)
        for image in images:
            for artifact in self._by_image.get(image.id, []):
                if id(artifact) not in seen:
                    seen.add(id(artifact))
                    relevant.append(artifact)
        return relevant

    def get_detectable_images(self) -> List[DetectableImage]:
        """One DetectableImage per image id, carrying every known media encoding."""
        images: List[DetectableImage] = []
        for image_id, artifacts in self._by_image.items():
            media: List[Dict[str, str]] = []
            for artifact in artifacts:
                for m in _media_from_image(artifact.target.get("image")):
                    if m not in media:
                        media.append(m)
            images.append(DetectableImage(id=image_id, media=media))
        return images

    def __len__(self) -> int:
        return len(self._artifacts)

    def stats(self) -> Dict[str, Any]:
        return {
            "artifact_count": len(self._artifacts),
            "marker_targets": len(self._by_marker),
            "image_targets": len(self._by_image),
        }
