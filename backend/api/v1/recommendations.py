"""
api/v1/recommendations.py
─────────────────────────
POST /api/v1/ai          — full JSON envelope
POST /api/v1/ai/content  — recommendation as plain text
POST /api/v1/ai/stream   — recommendation as server-sent events
POST /api/v1/ai/map      — coordinates, venues and a static map (no AI call)

Geocoding / search failures map to the error's HTTP status. An AI failure
is not an abort: the envelope still carries the venues, and the status code
used for it is configurable (``AI_FAILURE_STATUS_CODE``).
"""

from __future__ import annotations

import json
from typing import Iterator, List, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import PlainTextResponse, StreamingResponse
from pydantic import BaseModel, Field

from api.dependencies import get_http_client, get_pipeline_config
from core.config import Settings, get_settings
from models.pipeline import PipelineConfig, PipelineResult
from models.venue import Coordinates, Venue
from services.errors import GEOCODE, SEARCH, PipelineError
from services.recommendation import get_recommendations, locate_venues
from services.static_map import build_static_map_url

router = APIRouter(
    prefix="/ai",
    tags=["recommendations"],
)

_STAGE_MESSAGES = {
    GEOCODE: "Failed to get location coordinates",
    SEARCH: "Failed to search for food",
}
_SUCCESS_MESSAGE = "Food recommendations generated successfully"
_AI_FAILURE_MESSAGE = "Failed to generate AI recommendations"


def _stage_message(exc: PipelineError) -> str:
    return _STAGE_MESSAGES.get(exc.stage, "Recommendation pipeline failed")


# ═══════════════════════════════════════════════════════════════════════════
# Request / response models
# ═══════════════════════════════════════════════════════════════════════════

class LocationRequest(BaseModel):
    """Body shared by every route; blank fields fall back to the defaults."""

    location: str = Field(default="", max_length=200, description="Place name to search around")
    city: Optional[str] = Field(default=None, max_length=100, description="City hint for geocoding")


class RecommendationData(BaseModel):
    location: str
    city: str
    coordinates: Coordinates
    venues: List[Venue]
    recommendation: Optional[str] = None
    model: Optional[str] = None

    @classmethod
    def from_result(cls, result: PipelineResult) -> "RecommendationData":
        return cls(
            location=result.location,
            city=result.city,
            coordinates=result.coordinates,
            venues=result.venues,
            recommendation=result.recommendation,
            model=result.model,
        )


class ApiResponse(BaseModel):
    """Envelope returned by ``POST /ai``."""

    success: bool
    message: str
    data: Optional[RecommendationData] = None
    error: Optional[str] = None


class MapResponse(BaseModel):
    location: str
    city: str
    coordinates: Coordinates
    venues: List[Venue]
    static_map_url: str


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════

@router.post(
    "",
    response_model=ApiResponse,
    summary="Recommend food near a location",
)
async def recommend(
    body: LocationRequest,
    response: Response,
    client: httpx.AsyncClient = Depends(get_http_client),
    config: PipelineConfig = Depends(get_pipeline_config),
    settings: Settings = Depends(get_settings),
) -> ApiResponse:
    try:
        result = await get_recommendations(client, config, body.location, body.city)
    except PipelineError as exc:
        response.status_code = exc.status_code
        return ApiResponse(success=False, message=_stage_message(exc), error=str(exc))

    if not result.success:
        response.status_code = settings.AI_FAILURE_STATUS_CODE
        return ApiResponse(
            success=False,
            message=_AI_FAILURE_MESSAGE,
            data=RecommendationData.from_result(result),
            error=result.error,
        )

    return ApiResponse(
        success=True,
        message=_SUCCESS_MESSAGE,
        data=RecommendationData.from_result(result),
    )


@router.post(
    "/content",
    response_class=PlainTextResponse,
    summary="Recommendation text only",
)
async def recommend_content(
    body: LocationRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    config: PipelineConfig = Depends(get_pipeline_config),
    settings: Settings = Depends(get_settings),
) -> PlainTextResponse:
    try:
        result = await get_recommendations(client, config, body.location, body.city)
    except PipelineError as exc:
        return PlainTextResponse(f"{_stage_message(exc)}: {exc}", status_code=exc.status_code)

    if not result.success:
        return PlainTextResponse(
            f"{_AI_FAILURE_MESSAGE}: {result.error}",
            status_code=settings.AI_FAILURE_TEXT_STATUS_CODE,
        )
    return PlainTextResponse(result.recommendation)


def _sse(event_type: str, content: str) -> str:
    payload = json.dumps({"type": event_type, "content": content}, ensure_ascii=False)
    return f"data: {payload}\n\n"


def _recommendation_events(text: str) -> Iterator[str]:
    for line in text.split("\n"):
        if line.strip():
            yield _sse("chunk", line)
    yield _sse("end", "stream_completed")


@router.post(
    "/stream",
    summary="Recommendation as server-sent events",
)
async def recommend_stream(
    body: LocationRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    config: PipelineConfig = Depends(get_pipeline_config),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    try:
        result = await get_recommendations(client, config, body.location, body.city)
    except PipelineError as exc:
        return StreamingResponse(
            iter([_sse("error", f"{_stage_message(exc)}: {exc}")]),
            status_code=exc.status_code,
            media_type="text/event-stream",
        )

    if not result.success:
        return StreamingResponse(
            iter([_sse("error", f"{_AI_FAILURE_MESSAGE}: {result.error}")]),
            status_code=settings.AI_FAILURE_TEXT_STATUS_CODE,
            media_type="text/event-stream",
        )
    return StreamingResponse(
        _recommendation_events(result.recommendation),
        media_type="text/event-stream",
    )


@router.post(
    "/map",
    response_model=MapResponse,
    summary="Coordinates, venues and a static map URL",
)
async def venue_map(
    body: LocationRequest,
    client: httpx.AsyncClient = Depends(get_http_client),
    config: PipelineConfig = Depends(get_pipeline_config),
    settings: Settings = Depends(get_settings),
) -> MapResponse:
    run_config = config.for_request(body.location, body.city)
    try:
        coords, venues = await locate_venues(client, run_config)
    except PipelineError as exc:
        raise HTTPException(status_code=exc.status_code, detail=f"{_stage_message(exc)}: {exc}")

    return MapResponse(
        location=run_config.keywords,
        city=run_config.city,
        coordinates=coords,
        venues=venues,
        static_map_url=build_static_map_url(
            settings.AMAP_STATIC_MAP_URL,
            run_config.amap_api_key,
            coords,
            venues,
            limit=run_config.prompt_venue_limit,
        ),
    )
