"""
Detection API Routes

Forwards detection events and artifact indexing requests to the shared
MeaningMaker and returns NearbyResultDeltas as JSON.

Over HTTP the fetch policy can only be given as a list of allowed origins;
when omitted the service's own origin is used.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from .fetch_policy import parse_absolute_url
from .meaning_maker import MeaningMaker
from .schemas import (
    DetectableImageModel,
    GeolocationRequest,
    ImageFoundRequest,
    ImageLostRequest,
    LoadArtifactsRequest,
    LoadArtifactsResponse,
    MarkerFoundRequest,
    MarkerLostRequest,
    NearbyResultDeltaModel,
)

logger = logging.getLogger("perception-backend")

router = APIRouter(tags=["Detection"])

# Shared MeaningMaker (will be set by main.py)
_maker: Optional[MeaningMaker] = None


def set_meaning_maker(maker: Optional[MeaningMaker]) -> None:
    """Set the MeaningMaker the routes forward to."""
    global _maker
    _maker = maker


def get_meaning_maker() -> MeaningMaker:
    if _maker is None:
        raise HTTPException(status_code=503, detail="MeaningMaker not initialized")
    return _maker


def _delta_response(delta) -> NearbyResultDeltaModel:
    return NearbyResultDeltaModel(**delta.to_dict())


def _require_url(raw: str):
    url = parse_absolute_url(raw)
    if url is None or not url.is_absolute_url:
        raise HTTPException(status_code=400, detail=f"Not an absolute URL: {raw!r}")
    return url


# ============================================================
# ARTIFACT INDEXING
# ============================================================

@router.get("/detectable-images", response_model=List[DetectableImageModel])
async def detectable_images():
    """Images currently worth running detection for."""
    images = await get_meaning_maker().get_detectable_images()
    return [DetectableImageModel(**image.to_dict()) for image in images]


@router.post("/artifacts/jsonld", response_model=LoadArtifactsResponse)
async def load_jsonld(request: LoadArtifactsRequest):
    """Load an artifact sitemap (JSON-LD) into the catalog."""
    url = _require_url(request.url)
    artifacts = await get_meaning_maker().load_artifacts_from_jsonld_url(url)
    logger.info(f"Loaded {len(artifacts)} artifact(s) from JSON-LD {url}")
    return LoadArtifactsResponse(
        url=str(url), count=len(artifacts), artifacts=[a.to_dict() for a in artifacts]
    )


@router.post("/artifacts/html", response_model=LoadArtifactsResponse)
async def load_html(request: LoadArtifactsRequest):
    """Index a single HTML page: cache its metadata and load its embedded artifacts."""
    url = _require_url(request.url)
    artifacts = await get_meaning_maker().load_artifacts_from_html_url(url)
    logger.info(f"Loaded {len(artifacts)} artifact(s) from page {url}")
    return LoadArtifactsResponse(
        url=str(url), count=len(artifacts), artifacts=[a.to_dict() for a in artifacts]
    )


# ============================================================
# DETECTION EVENTS
# ============================================================

@router.post("/markers/found", response_model=NearbyResultDeltaModel)
async def marker_found(request: MarkerFoundRequest):
    delta = await get_meaning_maker().marker_found(request.marker.to_marker(), request.allowed_origins)
    logger.debug(f"Marker found {request.marker.value[:60]}: +{len(delta.found)} -{len(delta.lost)}")
    return _delta_response(delta)


@router.post("/markers/lost", response_model=NearbyResultDeltaModel)
async def marker_lost(request: MarkerLostRequest):
    delta = await get_meaning_maker().marker_lost(request.marker.to_marker())
    return _delta_response(delta)


@router.post("/images/found", response_model=NearbyResultDeltaModel)
async def image_found(request: ImageFoundRequest):
    delta = await get_meaning_maker().image_found(request.image.to_image(), request.allowed_origins)
    return _delta_response(delta)


@router.post("/images/lost", response_model=NearbyResultDeltaModel)
async def image_lost(request: ImageLostRequest):
    delta = await get_meaning_maker().image_lost(request.image.to_image())
    return _delta_response(delta)


@router.post("/geolocation", response_model=NearbyResultDeltaModel)
async def update_geolocation(request: GeolocationRequest):
    delta = await get_meaning_maker().update_geolocation(request.coords.to_coords(), request.allowed_origins)
    return _delta_response(delta)
