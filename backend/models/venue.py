"""
models/venue.py
───────────────
Pydantic v2 models for the AMap geocoding and place-search payloads.

Covers:
  • AmapText            — AMap string field that may arrive as ``[]``
  • Coordinates         — (longitude, latitude) with range validation
  • Venue               — one point of interest from place/around
  • GeocodeTip          — one input-tips candidate
  • GeocodeResponse     — input-tips envelope
  • PlaceAroundResponse — place/around envelope
"""

from __future__ import annotations

from typing import Annotated, Any, List, Optional, Tuple

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_serializer,
    model_validator,
)


# ═══════════════════════════════════════════════════════════════════════════
# AMap string quirk
# ═══════════════════════════════════════════════════════════════════════════

def _amap_text(v: Any) -> Optional[str]:
    """AMap sends ``[]`` (and sometimes bare numbers) where a string is expected."""
    if v is None:
        return None
    if isinstance(v, list):
        parts = [str(item) for item in v if item not in (None, "")]
        return ";".join(parts) or None
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    if isinstance(v, str):
        return v.strip() or None
    return v


AmapText = Annotated[Optional[str], BeforeValidator(_amap_text)]
"""Optional string that treats AMap's ``[]`` placeholder as absent."""


# ═══════════════════════════════════════════════════════════════════════════
# Coordinates
# ═══════════════════════════════════════════════════════════════════════════

class Coordinates(BaseModel):
    """
    Decimal-degree position, serialized as ``[longitude, latitude]``.

    AMap uses the same longitude-first order in its ``"lon,lat"`` strings.
    """

    model_config = ConfigDict(frozen=True)

    longitude: float
    latitude: float

    @model_validator(mode="before")
    @classmethod
    def _accept_pair(cls, values: Any) -> Any:
        if isinstance(values, (list, tuple)):
            if len(values) != 2:
                raise ValueError("coordinates must be a [longitude, latitude] pair")
            return {"longitude": values[0], "latitude": values[1]}
        return values

    @field_validator("longitude")
    @classmethod
    def _validate_longitude(cls, v: float) -> float:
        if not (-180.0 <= v <= 180.0):
            raise ValueError(f"Longitude must be between -180 and 180, got {v}")
        return v

    @field_validator("latitude")
    @classmethod
    def _validate_latitude(cls, v: float) -> float:
        if not (-90.0 <= v <= 90.0):
            raise ValueError(f"Latitude must be between -90 and 90, got {v}")
        return v

    @model_serializer
    def _as_list(self) -> List[float]:
        return [self.longitude, self.latitude]

    def as_pair(self) -> Tuple[float, float]:
        return (self.longitude, self.latitude)

    def to_amap(self) -> str:
        """Format as the ``"lon,lat"`` string AMap expects in query params."""
        return f"{self.longitude},{self.latitude}"

    @classmethod
    def parse(cls, text: Optional[str]) -> Optional["Coordinates"]:
        """Parse ``"lon,lat"``; return None unless both halves are valid floats."""
        if not text:
            return None
        parts = text.split(",")
        if len(parts) != 2:
            return None
        try:
            return cls(longitude=float(parts[0]), latitude=float(parts[1]))
        except ValueError:
            return None


# ═══════════════════════════════════════════════════════════════════════════
# Venue
# ═══════════════════════════════════════════════════════════════════════════

UNKNOWN_VENUE_NAME = "未知名称"


class Venue(BaseModel):
    """A point of interest as returned by place/around (``extensions=base``)."""

    name: str = Field(default=UNKNOWN_VENUE_NAME, min_length=1)
    address: AmapText = None
    distance: AmapText = Field(
        default=None,
        description="Metres from the search origin, kept as the upstream string",
    )
    typecode: AmapText = None
    tel: AmapText = None
    location: AmapText = Field(default=None, description='"lon,lat" of the venue')

    @field_validator("name", mode="before")
    @classmethod
    def _name_or_placeholder(cls, v: Any) -> str:
        # AMap occasionally omits a name or sends []
        return _amap_text(v) or UNKNOWN_VENUE_NAME

    @property
    def coordinates(self) -> Optional[Coordinates]:
        return Coordinates.parse(self.location)


# ═══════════════════════════════════════════════════════════════════════════
# Upstream envelopes
# ═══════════════════════════════════════════════════════════════════════════

class AmapEnvelope(BaseModel):
    """Status fields shared by every AMap v3 response."""

    status: AmapText = None
    info: AmapText = None
    infocode: AmapText = None

    @property
    def is_ok(self) -> bool:
        # Older payloads omit status entirely; only an explicit "0" is a failure.
        return self.status is None or self.status == "1"


class GeocodeTip(BaseModel):
    name: AmapText = None
    district: AmapText = None
    location: AmapText = None


class GeocodeResponse(AmapEnvelope):
    tips: Optional[List[GeocodeTip]] = None


class PlaceAroundResponse(AmapEnvelope):
    count: AmapText = None
    pois: Optional[List[Venue]] = None
