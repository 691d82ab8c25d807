"""
services/static_map.py
──────────────────────
AMap static-map URL for the map-metadata route.

The origin gets a large red marker; venues with a known location get
numbered markers in list order.
"""

from __future__ import annotations

from typing import Sequence
from urllib.parse import urlencode

from models.venue import Coordinates, Venue

DEFAULT_ZOOM = 15
DEFAULT_SIZE = "750*400"
ORIGIN_MARKER = "large,0xFF0000,A"
VENUE_MARKER = "mid,0x0066FF"


def build_static_map_url(
    base_url: str,
    api_key: str,
    origin: Coordinates,
    venues: Sequence[Venue] = (),
    limit: int = 5,
    zoom: int = DEFAULT_ZOOM,
    size: str = DEFAULT_SIZE,
) -> str:
    markers = [f"{ORIGIN_MARKER}:{origin.to_amap()}"]
    for i, venue in enumerate(venues[:limit], start=1):
        coords = venue.coordinates
        if coords is None:
            continue
        markers.append(f"{VENUE_MARKER},{i}:{coords.to_amap()}")

    query = urlencode(
        {
            "location": origin.to_amap(),
            "zoom": zoom,
            "size": size,
            "markers": "|".join(markers),
            "key": api_key,
        },
        safe=",*:|",
    )
    return f"{base_url}?{query}"
