"""
services/recommendation.py
──────────────────────────
Core recommendation pipeline for NearBite.

Pipeline:
  Phase 1 → Geocode        (AMap input tips)       terminal on failure
  Phase 2 → Nearby search  (AMap place/around)     terminal on failure
  Phase 3 → Prompt build   (pure)
  Phase 4 → AI synthesis   (primary → fallback)    downgraded on failure
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

import httpx

from models.pipeline import PipelineConfig, PipelineResult
from models.venue import Coordinates, Venue
from services.ai import AiSynthesizer
from services.errors import ModelFailure
from services.geocode import resolve_coordinates
from services.nearby import search_nearby
from services.prompt import build_prompt

logger = logging.getLogger("nearbite.recommendation")


async def locate_venues(
    client: httpx.AsyncClient,
    config: PipelineConfig,
) -> Tuple[Coordinates, List[Venue]]:
    """Phases 1–2 only. Errors propagate unchanged, tagged with their stage."""
    coords = await resolve_coordinates(client, config)
    venues = await search_nearby(client, config, coords)
    return coords, venues


async def get_recommendations(
    client: httpx.AsyncClient,
    config: PipelineConfig,
    location: Optional[str] = None,
    city: Optional[str] = None,
) -> PipelineResult:
    """
    Full recommendation pipeline for one request.

    *location* / *city* override the configured defaults for this run only.
    Geocoding and search failures raise; an AI failure still returns a
    ``PipelineResult`` with ``success=False`` and the venues gathered so far.
    """
    run_config = config.for_request(location, city)

    # ── Phase 1 + 2: Coordinates and venues ─────────────────────────────
    coords, venues = await locate_venues(client, run_config)
    logger.info("Phase 2: %d venue(s) near %r", len(venues), run_config.keywords)

    # ── Phase 3: Prompt ─────────────────────────────────────────────────
    prompt = build_prompt(
        venues,
        run_config.keywords,
        run_config.radius,
        limit=run_config.prompt_venue_limit,
    )

    # ── Phase 4: Synthesis ──────────────────────────────────────────────
    synthesizer = AiSynthesizer(client, run_config)
    try:
        recommendation = await synthesizer.synthesize(prompt)
    except ModelFailure as exc:
        logger.warning("Phase 4 failed, returning venues without recommendation: %s", exc.message)
        return PipelineResult(
            location=run_config.keywords,
            city=run_config.city,
            coordinates=coords,
            venues=venues,
            success=False,
            error=exc.message,
            attempts=exc.attempts,
        )

    logger.info("Phase 4 complete: recommendation from %s ✓", synthesizer.model)
    return PipelineResult(
        location=run_config.keywords,
        city=run_config.city,
        coordinates=coords,
        venues=venues,
        recommendation=recommendation,
        model=synthesizer.model,
        success=True,
        attempts=synthesizer.attempts,
    )
