"""
Artifacts Module: Catalog, Detection State and Page Metadata

This module provides:
- Schema types: Marker, DetectedImage, GeoCoordinates, ARArtifact, NearbyResult(Delta)
- ArtifactLoader: Reads ARArtifacts from JSON-LD in documents and JSON URLs
- LocalArtifactStore: In-memory artifact catalog
- ArtifactDealer: Turns detection events into found / lost deltas
- extract_page_metadata: Derives a Thing describing a fetched page
"""

from .schema import (
    ARArtifact,
    Content,
    DetectableImage,
    DetectedImage,
    GeoCoordinates,
    Marker,
    NearbyResult,
    NearbyResultDelta,
    RawContent,
    StructuredContent,
    Thing,
    as_content,
    content_to_json,
    type_is_artifact,
    type_is_thing,
)
from .artifact_loader import ArtifactLoader, artifacts_from_json_ld
from .artifact_store import ArtifactStore, LocalArtifactStore
from .artifact_dealer import ArtifactDealer
from .page_metadata import extract_page_metadata

__all__ = [
    "ARArtifact",
    "Content",
    "DetectableImage",
    "DetectedImage",
    "GeoCoordinates",
    "Marker",
    "NearbyResult",
    "NearbyResultDelta",
    "RawContent",
    "StructuredContent",
    "Thing",
    "as_content",
    "content_to_json",
    "type_is_artifact",
    "type_is_thing",
    "ArtifactLoader",
    "artifacts_from_json_ld",
    "ArtifactStore",
    "LocalArtifactStore",
    "ArtifactDealer",
    "extract_page_metadata",
]
