"""
services/upstream.py
────────────────────
Single GET helper for the AMap web-service endpoints.

Maps every way a call can go wrong onto the pipeline error taxonomy:

  • connection, timeout, body decoding → TransportError
  • non-2xx HTTP status                → UpstreamStatusError(http status)
  • body is not a JSON object          → ParseError (malformed)
  • JSON does not fit the typed model  → ParseError (malformed)
  • ``"status": "0"`` inside a 200     → UpstreamStatusError(AMap infocode)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Type, TypeVar

import httpx
from pydantic import ValidationError

from models.venue import AmapEnvelope
from services.errors import ParseError, TransportError, UpstreamStatusError

logger = logging.getLogger("nearbite.upstream")

EnvelopeT = TypeVar("EnvelopeT", bound=AmapEnvelope)

# How much of an unparseable body is kept in error details
_BODY_SNIPPET = 300


def user_agent(username: str, service: str) -> str:
    """``<account>-<service>`` header sent with every AMap request."""
    return f"{username}-{service}"


async def fetch_amap(
    client: httpx.AsyncClient,
    url: str,
    params: Dict[str, Any],
    *,
    stage: str,
    response_model: Type[EnvelopeT],
    agent: str,
) -> EnvelopeT:
    """Issue one GET and return the validated AMap envelope."""
    try:
        resp = await client.get(url, params=params, headers={"User-Agent": agent})
    except httpx.TimeoutException as exc:
        raise TransportError(f"request timed out: {exc!r}", stage=stage) from exc
    except httpx.RequestError as exc:
        raise TransportError(f"request failed before a usable response: {exc!r}", stage=stage) from exc

    logger.debug("%s GET %s → %d", stage, url, resp.status_code)

    if not resp.is_success:
        raise UpstreamStatusError(
            resp.status_code,
            f"HTTP {resp.status_code} from {url}",
            stage=stage,
            details={"body": resp.text[:_BODY_SNIPPET]},
        )

    try:
        payload = resp.json()
    except ValueError as exc:
        raise ParseError(
            f"response is not valid JSON: {exc}",
            stage=stage,
            details={"body": resp.text[:_BODY_SNIPPET]},
        ) from exc

    if not isinstance(payload, dict):
        raise ParseError(
            f"expected a JSON object, got {type(payload).__name__}",
            stage=stage,
        )

    try:
        envelope = response_model.model_validate(payload)
    except ValidationError as exc:
        raise ParseError(
            f"unexpected response shape ({exc.error_count()} invalid field(s)): "
            f"{exc.errors()[0]['loc']} {exc.errors()[0]['msg']}",
            stage=stage,
        ) from exc

    if not envelope.is_ok:
        code = int(envelope.infocode) if (envelope.infocode or "").isdigit() else 0
        raise UpstreamStatusError(
            code,
            f"AMap rejected the request: {envelope.info or 'unknown error'}",
            stage=stage,
            details={"infocode": envelope.infocode},
        )

    return envelope
