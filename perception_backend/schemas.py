"""
Pydantic schemas for the HTTP surface.
Defines request bodies for detection events and the response shapes for deltas.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from .artifacts.schema import DetectedImage, GeoCoordinates, Marker


class MarkerPayload(BaseModel):
    """A scanned marker as sent by the client."""
    value: str
    type: str = "qrcode"

    def to_marker(self) -> Marker:
        return Marker(value=self.value, type=self.type)


class ImagePayload(BaseModel):
    """A detected image, identified by the id of its DetectableImage."""
    id: str

    def to_image(self) -> DetectedImage:
        return DetectedImage(id=self.id)


class CoordsPayload(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def to_coords(self) -> GeoCoordinates:
        return GeoCoordinates(latitude=self.latitude, longitude=self.longitude)


class MarkerFoundRequest(BaseModel):
    """Marker detected. `allowed_origins` overrides the default same-origin policy."""
    marker: MarkerPayload
    allowed_origins: Optional[List[str]] = None


class MarkerLostRequest(BaseModel):
    marker: MarkerPayload


class ImageFoundRequest(BaseModel):
    image: ImagePayload
    allowed_origins: Optional[List[str]] = None


class ImageLostRequest(BaseModel):
    image: ImagePayload


class GeolocationRequest(BaseModel):
    coords: CoordsPayload
    allowed_origins: Optional[List[str]] = None


class LoadArtifactsRequest(BaseModel):
    """URL of an HTML page or JSON-LD artifact file to index."""
    url: str


class NearbyResultModel(BaseModel):
    target: Dict[str, Any]
    content: Any = None


class NearbyResultDeltaModel(BaseModel):
    found: List[NearbyResultModel] = []
    lost: List[NearbyResultModel] = []


class LoadArtifactsResponse(BaseModel):
    url: str
    count: int
    artifacts: List[Dict[str, Any]] = []


class DetectableImageModel(BaseModel):
    id: str
    media: List[Dict[str, str]] = []
