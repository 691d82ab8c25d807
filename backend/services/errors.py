"""
services/errors.py
──────────────────
Failure taxonomy shared by every pipeline stage.

Each error records the ``stage`` that raised it so the boundary layer can
tell "geocoding failed" from "search failed" without inspecting messages,
and an HTTP ``status_code`` the boundary may use when it surfaces the error.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from models.pipeline import ModelAttempt


# Stage labels
GEOCODE = "geocode"
SEARCH = "search"
SYNTHESIS = "synthesis"


class PipelineError(Exception):
    """Base exception for pipeline failures."""

    status_code: int = 502

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.details = details or {}

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class TransportError(PipelineError):
    """Connection failure, timeout or undecodable body before a usable response."""

    status_code = 504


class UpstreamStatusError(PipelineError):
    """Non-success HTTP status, or a provider-level status inside a 200 body."""

    def __init__(
        self,
        code: int,
        message: str,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, stage=stage, details=details)
        self.code = code


class ParseError(PipelineError):
    """Response body is malformed or lacks an expected field."""

    MISSING_FIELD = "missing_field"
    MALFORMED = "malformed"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        reason: str = MALFORMED,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, stage=stage, details=details)
        self.reason = reason


class NoResults(PipelineError):
    """Well-formed geocoding response with no candidates."""

    status_code = 404


class EmptyResult(PipelineError):
    """Well-formed completion response with nothing to say."""


class ModelFailure(PipelineError):
    """Both the primary and the fallback model attempts failed."""

    def __init__(
        self,
        message: str,
        attempts: "List[ModelAttempt]",
        last_error: Optional[PipelineError] = None,
    ):
        super().__init__(message, stage=SYNTHESIS)
        self.attempts = list(attempts)
        self.last_error = last_error
