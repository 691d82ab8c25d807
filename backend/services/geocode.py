"""
services/geocode.py
───────────────────
Resolve a free-text place name to coordinates via AMap input tips.

The first tip whose ``location`` parses as ``"lon,lat"`` wins; tips for bus
lines and districts carry no location and are skipped. There is no retry:
one request per call.
"""

from __future__ import annotations

import logging

import httpx

from models.pipeline import PipelineConfig
from models.venue import Coordinates, GeocodeResponse
from services.errors import GEOCODE, NoResults, ParseError
from services.upstream import fetch_amap, user_agent

logger = logging.getLogger("nearbite.geocode")


def first_coordinates(response: GeocodeResponse) -> Coordinates:
    """Pick the first parseable tip location, scanning in upstream order."""
    if response.tips is None:
        raise ParseError(
            "geocoding response has no 'tips' field",
            stage=GEOCODE,
            reason=ParseError.MISSING_FIELD,
        )
    if not response.tips:
        raise NoResults("no matching place found", stage=GEOCODE)

    for tip in response.tips:
        coords = Coordinates.parse(tip.location)
        if coords is not None:
            return coords

    raise ParseError(
        f"none of {len(response.tips)} candidate(s) carried a parseable location",
        stage=GEOCODE,
    )


async def resolve_coordinates(
    client: httpx.AsyncClient,
    config: PipelineConfig,
) -> Coordinates:
    """
    Geocode ``config.keywords`` (hinted by ``config.city``).

    Raises ``NoResults``, ``ParseError``, ``TransportError`` or
    ``UpstreamStatusError`` — all tagged with the ``geocode`` stage.
    """
    params = {
        "key": config.amap_api_key,
        "keywords": config.keywords,
        "city": config.city,
    }
    logger.info("Resolving coordinates for %r (city=%r)", config.keywords, config.city)

    response = await fetch_amap(
        client,
        config.input_tips_url,
        params,
        stage=GEOCODE,
        response_model=GeocodeResponse,
        agent=user_agent(config.username, "geo-service"),
    )
    coords = first_coordinates(response)

    logger.info("Coordinates resolved ✓ %.6f, %.6f", coords.longitude, coords.latitude)
    return coords
