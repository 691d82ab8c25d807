"""
services/nearby.py
──────────────────
Venue search around a coordinate via AMap place/around.

The result cap is enforced upstream through ``offset``; the client neither
filters nor re-sorts. An empty ``pois`` list is a valid outcome.
"""

from __future__ import annotations

import logging
from typing import List

import httpx

from models.pipeline import PipelineConfig
from models.venue import Coordinates, PlaceAroundResponse, Venue
from services.errors import SEARCH, ParseError
from services.upstream import fetch_amap, user_agent

logger = logging.getLogger("nearbite.nearby")


def search_params(config: PipelineConfig, coords: Coordinates) -> dict:
    """Query parameters for place/around (``extensions=base`` keeps payloads light)."""
    return {
        "key": config.amap_api_key,
        "location": coords.to_amap(),
        "types": config.food_types,
        "radius": str(config.radius),
        "offset": str(config.max_results),
        "extensions": "base",
    }


async def search_nearby(
    client: httpx.AsyncClient,
    config: PipelineConfig,
    coords: Coordinates,
) -> List[Venue]:
    """Return venues around *coords* in the order AMap ranked them."""
    logger.info(
        "Searching venues: radius=%dm types=%s max=%d around %s",
        config.radius,
        config.food_types,
        config.max_results,
        coords.to_amap(),
    )

    response = await fetch_amap(
        client,
        config.place_around_url,
        search_params(config, coords),
        stage=SEARCH,
        response_model=PlaceAroundResponse,
        agent=user_agent(config.username, "food-service"),
    )
    if response.pois is None:
        raise ParseError(
            "place search response has no 'pois' field",
            stage=SEARCH,
            reason=ParseError.MISSING_FIELD,
        )

    if response.pois:
        logger.info("Found %d venue(s) ✓", len(response.pois))
    else:
        logger.info("No venues within %dm of %s", config.radius, coords.to_amap())
    return list(response.pois)
