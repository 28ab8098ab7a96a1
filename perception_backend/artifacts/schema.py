"""
Artifact Schema: Detection Events, Content and Nearby Results

Plain dataclasses shared by the loader, store, dealer and MeaningMaker.

Content attached to an artifact is one of two shapes:
- RawContent: a bare string, normally a URL pointing at the real content
- StructuredContent: a schema.org style Thing (a dict with an "@type" key)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Thing = Dict[str, Any]

ARTIFACT_TYPE = "ARArtifact"
BARCODE_TARGET_TYPE = "Barcode"
IMAGE_TARGET_TYPE = "ARImageTarget"


def type_is_thing(value: Any) -> bool:
    """True if `value` looks like a Thing (a mapping carrying an @type)."""
    return isinstance(value, dict) and "@type" in value


def type_is_artifact(value: Any) -> bool:
    """True if `value` is typed ARArtifact, alone or within an @type list."""
    if not isinstance(value, dict):
        return False
    type_ = value.get("@type")
    if isinstance(type_, list):
        return ARTIFACT_TYPE in type_
    return type_ == ARTIFACT_TYPE


# ============================================================
# DETECTION EVENTS
# ============================================================

@dataclass(frozen=True)
class Marker:
    """A recognized scan payload, e.g. the text of a QR code."""
    value: str
    type: str = "qrcode"


@dataclass(frozen=True)
class DetectedImage:
    """A recognized image, identified by the id of its DetectableImage."""
    id: str


@dataclass(frozen=True)
class GeoCoordinates:
    latitude: float
    longitude: float


# ============================================================
# CONTENT
# ============================================================

@dataclass(frozen=True)
class RawContent:
    """Content given as a plain string (usually a URL)."""
    value: str


@dataclass(frozen=True)
class StructuredContent:
    """Content given as a Thing."""
    thing: Thing


Content = Union[RawContent, StructuredContent]


def as_content(value: Any) -> Optional[Content]:
    """Wrap a raw JSON value as Content. Returns None for anything unusable."""
    if isinstance(value, str):
        return RawContent(value)
    if isinstance(value, dict):
        return StructuredContent(value)
    return None


def content_to_json(content: Optional[Content]) -> Any:
    """Unwrap Content back into its JSON form (str, dict or None)."""
    if isinstance(content, RawContent):
        return content.value
    if isinstance(content, StructuredContent):
        return content.thing
    return None


# ============================================================
# ARTIFACTS AND RESULTS
# ============================================================

@dataclass(eq=False)
class ARArtifact:
    """
    Catalog entry pairing a detectable target with displayable content.

    Artifacts compare by identity: two loads of the same JSON-LD produce
    two distinct artifacts.

    Attributes:
        target: The arTarget object (Barcode, ARImageTarget, ...)
        content: The arContent, either a Thing or a URL string
        raw: The full JSON-LD object the artifact was read from
    """
    target: Dict[str, Any]
    content: Optional[Content] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @property
    def target_type(self) -> Optional[str]:
        return self.target.get("@type")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "@type": ARTIFACT_TYPE,
            "arTarget": self.target,
            "arContent": content_to_json(self.content),
        }


@dataclass(eq=False)
class NearbyResult:
    """One artifact currently relevant to the user. `content` may be enriched in place."""
    target: Dict[str, Any]
    content: Optional[Content]
    artifact: ARArtifact

    @staticmethod
    def for_artifact(artifact: ARArtifact) -> "NearbyResult":
        return NearbyResult(target=artifact.target, content=artifact.content, artifact=artifact)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target": self.target,
            "content": content_to_json(self.content),
        }


@dataclass
class NearbyResultDelta:
    """Content found and lost as the result of a single detection event."""
    found: List[NearbyResult] = field(default_factory=list)
    lost: List[NearbyResult] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "found": [r.to_dict() for r in self.found],
            "lost": [r.to_dict() for r in self.lost],
        }


@dataclass(frozen=True)
class DetectableImage:
    """An image worth running detection for, with every media encoding known for it."""
    id: str
    media: List[Dict[str, str]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "media": list(self.media)}
