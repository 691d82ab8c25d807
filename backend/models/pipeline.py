"""
models/pipeline.py
──────────────────
Pydantic v2 models that flow through one pipeline run.

Covers:
  • PipelineConfig  — frozen per-run configuration with request overrides
  • ModelRole       — primary / fallback marker for a model attempt
  • ModelAttempt    — one chat-completion attempt and its outcome
  • PromptContext   — bounded input of the prompt builder
  • PipelineResult  — envelope returned by the orchestrator
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from models.venue import Coordinates, Venue


# ═══════════════════════════════════════════════════════════════════════════
# Configuration
# ═══════════════════════════════════════════════════════════════════════════

class PipelineConfig(BaseModel):
    """
    Read-only configuration for a pipeline run.

    The service holds one base instance for its whole lifetime;
    :meth:`for_request` derives a run-local copy so concurrent runs never
    observe each other's query overrides.
    """

    model_config = ConfigDict(frozen=True)

    username: str = "default_user"
    keywords: str
    city: str = ""
    amap_api_key: str = Field(..., repr=False)
    qwen_api_key: str = Field(..., repr=False)
    radius: int = Field(default=1000, gt=0)
    food_types: str = "050000"
    max_results: int = Field(default=5, ge=1)
    qwen_model: str = "qwen3-235b-a22b"
    prompt_venue_limit: int = Field(default=5, ge=5, le=8)
    input_tips_url: str = "https://restapi.amap.com/v3/assistant/inputtips"
    place_around_url: str = "https://restapi.amap.com/v3/place/around"
    chat_url: str = "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"

    def for_request(
        self,
        location: Optional[str] = None,
        city: Optional[str] = None,
    ) -> "PipelineConfig":
        """Return a copy with the query (and city) overridden when non-blank."""
        update = {}
        if location and location.strip():
            update["keywords"] = location.strip()
        if city and city.strip():
            update["city"] = city.strip()
        if not update:
            return self
        return self.model_copy(update=update)


# ═══════════════════════════════════════════════════════════════════════════
# Model attempts
# ═══════════════════════════════════════════════════════════════════════════

class ModelRole(str, Enum):
    """Which slot of the fallback policy an attempt used."""

    PRIMARY = "primary"
    FALLBACK = "fallback"


class ModelAttempt(BaseModel):
    """A single chat-completion call made by the synthesizer."""

    model: str
    role: ModelRole
    error: Optional[str] = Field(
        default=None,
        description="Failure message, None when the attempt succeeded",
    )

    @property
    def succeeded(self) -> bool:
        return self.error is None


# ═══════════════════════════════════════════════════════════════════════════
# Prompt input
# ═══════════════════════════════════════════════════════════════════════════

class PromptContext(BaseModel):
    """Everything the prompt builder needs, already bounded."""

    model_config = ConfigDict(frozen=True)

    location: str
    radius: int = Field(..., gt=0)
    venues: List[Venue] = Field(default_factory=list)

    @classmethod
    def bounded(
        cls,
        location: str,
        radius: int,
        venues: List[Venue],
        limit: int,
    ) -> "PromptContext":
        """Keep only the first *limit* venues, in upstream order."""
        return cls(location=location, radius=radius, venues=list(venues[:limit]))


# ═══════════════════════════════════════════════════════════════════════════
# Result envelope
# ═══════════════════════════════════════════════════════════════════════════

class PipelineResult(BaseModel):
    """
    Outcome of a run that got past geocoding and search.

    ``success`` is True exactly when a recommendation was produced; when the
    language-model stage failed the venue data is still present and
    ``error`` explains why the recommendation is missing.
    """

    location: str
    city: str = ""
    coordinates: Coordinates
    venues: List[Venue] = Field(default_factory=list)
    recommendation: Optional[str] = None
    model: Optional[str] = Field(
        default=None,
        description="Model identifier that produced the recommendation",
    )
    success: bool
    error: Optional[str] = None
    attempts: List[ModelAttempt] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_shape(self) -> "PipelineResult":
        if self.success:
            if self.recommendation is None or self.error is not None:
                raise ValueError("successful result needs a recommendation and no error")
        elif not self.error or self.recommendation is not None:
            raise ValueError("unsuccessful result needs an error and no recommendation")
        return self
