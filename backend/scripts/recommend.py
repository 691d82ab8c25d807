"""
scripts/recommend.py
────────────────────
Run one recommendation pipeline from the command line.

Usage:
    python -m scripts.recommend "星海广场"                 # from backend/
    python -m scripts.recommend "星海广场" --city 大连 --json
    python scripts/recommend.py                          # configured defaults

Exit status:
    0 → recommendation produced
    1 → geocoding or search failed (nothing to show)
    2 → venues found but both AI models failed
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import httpx

# Ensure backend/ is on sys.path when run directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.config import get_settings
from models.pipeline import PipelineResult
from models.venue import Venue
from services.errors import PipelineError
from services.recommendation import get_recommendations

logger = logging.getLogger("nearbite.cli")

EXIT_OK = 0
EXIT_PIPELINE_ERROR = 1
EXIT_AI_FAILURE = 2


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="What should I eat near here?")
    parser.add_argument("location", nargs="?", default="", help="place name (default: configured keywords)")
    parser.add_argument("--city", default=None, help="city hint for geocoding")
    parser.add_argument("--json", action="store_true", help="print the result envelope as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser.parse_args(argv)


def _print_venues(venues: List[Venue]) -> None:
    """Print the venue list as a plain table."""
    if not venues:
        print("\n  No food venues found nearby.")
        return

    print("\n" + "=" * 62)
    print(f"  {len(venues)} VENUE(S)")
    print("=" * 62)
    for i, venue in enumerate(venues, start=1):
        print(f"  {i}. {venue.name}")
        print(f"     address : {venue.address or '—'}")
        print(f"     distance: {venue.distance or '—'} m")
        print(f"     type    : {venue.typecode or '—'}")
        if venue.tel:
            print(f"     phone   : {venue.tel}")
    print("=" * 62)


def _print_result(result: PipelineResult) -> None:
    lon, lat = result.coordinates.as_pair()
    print(f"\n  Location   : {result.location} ({result.city or 'any city'})")
    print(f"  Coordinates: {lon:.6f}, {lat:.6f}")
    _print_venues(result.venues)

    if result.success:
        print(f"\n  Recommendation ({result.model}):\n")
        print(result.recommendation)
    else:
        print(f"\n  No recommendation: {result.error}")


async def run(location: str, city: Optional[str], as_json: bool) -> int:
    settings = get_settings()
    config = settings.pipeline_config()

    async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS) as client:
        try:
            result = await get_recommendations(client, config, location, city)
        except PipelineError as exc:
            logger.error("Pipeline aborted: %s", exc)
            if as_json:
                print(json.dumps({"success": False, "stage": exc.stage, "error": str(exc)}, ensure_ascii=False))
            return EXIT_PIPELINE_ERROR

    if as_json:
        print(result.model_dump_json(indent=2))
    else:
        _print_result(result)
    return EXIT_OK if result.success else EXIT_AI_FAILURE


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    return asyncio.run(run(args.location, args.city, args.json))


if __name__ == "__main__":
    sys.exit(main())
