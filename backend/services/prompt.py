"""
services/prompt.py
──────────────────
Turn a venue list into the user prompt for the language model.

Pure and deterministic: the same venues, location and radius always render
to byte-identical text. Only the first ``limit`` venues are included.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from models.pipeline import PromptContext
from models.venue import Venue

DEFAULT_VENUE_LIMIT = 5
MIN_VENUE_LIMIT = 5
MAX_VENUE_LIMIT = 8

SYSTEM_PROMPT = (
    "You are a professional food critic. Based on the location information "
    "the user provides, give professional, concise dining recommendations."
)

OTHER_LABEL = "Other"

# AMap POI type codes for the food & beverage branch (05xxxx)
CATEGORY_LABELS: Dict[str, str] = {
    "050000": "Food & beverage",
    "050100": "Chinese restaurant",
    "050101": "Banquet restaurant",
    "050102": "Sichuan cuisine",
    "050103": "Cantonese cuisine",
    "050104": "Shandong cuisine",
    "050105": "Jiangsu cuisine",
    "050106": "Zhejiang cuisine",
    "050107": "Shanghai cuisine",
    "050108": "Hunan cuisine",
    "050109": "Anhui cuisine",
    "050110": "Fujian cuisine",
    "050111": "Beijing cuisine",
    "050112": "Hubei cuisine",
    "050113": "Northeastern cuisine",
    "050114": "Yunnan-Guizhou cuisine",
    "050115": "Northwestern cuisine",
    "050116": "Time-honoured brand",
    "050117": "Hot pot",
    "050118": "Regional specialty",
    "050119": "Seafood restaurant",
    "050120": "Vegetarian restaurant",
    "050121": "Halal restaurant",
    "050200": "Foreign restaurant",
    "050201": "Western restaurant",
    "050202": "Japanese cuisine",
    "050203": "Korean cuisine",
    "050204": "French cuisine",
    "050205": "Italian cuisine",
    "050206": "Thai / Vietnamese cuisine",
    "050300": "Fast food",
    "050305": "Hong Kong style cafe",
    "050400": "Casual dining",
    "050500": "Coffee shop",
    "050600": "Tea house",
    "050700": "Cold drinks",
    "050800": "Bakery",
    "050900": "Dessert shop",
}

INSTRUCTIONS = (
    "Based on the information above:\n"
    "1. Recommend 1-3 restaurants best suited to a business meal.\n"
    "2. Recommend 1-2 of the best-value, budget-friendly options.\n"
    "3. Analyse the geographic convenience of these venues.\n"
    "4. Give an overall verdict in no more than 100 words.\n"
    "Answer in professional but concise language and do not use emoji."
)


def _primary_code(typecode: Optional[str]) -> Optional[str]:
    """AMap joins multiple codes with ``|``; the first one is the main category."""
    if not typecode:
        return None
    return typecode.split("|", 1)[0].strip() or None


def category_label(typecode: Optional[str]) -> str:
    """Resolve a type code to a label: exact, then mid-level, then top-level."""
    code = _primary_code(typecode)
    if code is None or len(code) != 6:
        return OTHER_LABEL
    for candidate in (code, code[:4] + "00", code[:2] + "0000"):
        if candidate in CATEGORY_LABELS:
            return CATEGORY_LABELS[candidate]
    return OTHER_LABEL


def _legend_lines(venues: Sequence[Venue]) -> List[str]:
    codes = sorted({_primary_code(v.typecode) or "" for v in venues})
    lines = ["Category legend:"]
    for code in codes:
        lines.append(f"- {code or 'n/a'}: {category_label(code)}")
    return lines


def _venue_lines(index: int, venue: Venue) -> List[str]:
    distance = f"{venue.distance} m" if venue.distance else "distance unknown"
    lines = [
        f"{index}. {venue.name} ({distance})",
        f"   Address: {venue.address or 'unknown'}",
        f"   Category: {category_label(venue.typecode)}",
    ]
    if venue.tel:
        lines.append(f"   Phone: {venue.tel}")
    return lines


def render_prompt(context: PromptContext) -> str:
    """Render an already-bounded context."""
    lines = [
        f"User location: {context.location}",
        f"Search radius: {context.radius} m",
        "",
    ]

    if context.venues:
        lines.extend(_legend_lines(context.venues))
        lines.append("")
        lines.append(f"Venues found ({len(context.venues)}):")
        for i, venue in enumerate(context.venues, start=1):
            lines.extend(_venue_lines(i, venue))
    else:
        lines.append("Venues found: none")
        lines.append(
            "No food venues were found within the search radius. Say so plainly "
            "and suggest widening the search or trying a nearby landmark."
        )

    lines.append("")
    lines.append(INSTRUCTIONS)
    return "\n".join(lines)


def build_prompt(
    venues: Sequence[Venue],
    location: str,
    radius: int,
    limit: int = DEFAULT_VENUE_LIMIT,
) -> str:
    """Bound *venues* to the first *limit* entries and render the prompt."""
    if not (MIN_VENUE_LIMIT <= limit <= MAX_VENUE_LIMIT):
        raise ValueError(
            f"venue limit must be between {MIN_VENUE_LIMIT} and {MAX_VENUE_LIMIT}, got {limit}"
        )
    context = PromptContext.bounded(location, radius, list(venues), limit)
    return render_prompt(context)
