"""
core/config.py
──────────────
Application configuration loaded from environment variables via pydantic-settings.
The .env file in the backend root is parsed automatically.
"""

from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from models.pipeline import PipelineConfig


class Settings(BaseSettings):
    """Central settings sourced from environment / .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # ── Account ─────────────────────────────────────────────────────────
    APP_USERNAME: str = "default_user"

    # ── Credentials ─────────────────────────────────────────────────────
    AMAP_API_KEY: str
    DASHSCOPE_API_KEY: str

    # ── Search defaults ─────────────────────────────────────────────────
    DEFAULT_KEYWORDS: str = "大连理工大学开发区校区"
    DEFAULT_CITY: str = "大连"
    SEARCH_RADIUS: int = Field(default=1000, gt=0, le=50000)
    FOOD_TYPES: str = "050000"
    MAX_FOOD_RESULTS: int = Field(default=5, ge=1, le=25)

    # ── Language model ──────────────────────────────────────────────────
    QWEN_MODEL: str = "qwen3-235b-a22b"
    PROMPT_VENUE_LIMIT: int = Field(default=5, ge=5, le=8)

    # ── External APIs ───────────────────────────────────────────────────
    AMAP_INPUT_TIPS_URL: str = "https://restapi.amap.com/v3/assistant/inputtips"
    AMAP_PLACE_AROUND_URL: str = "https://restapi.amap.com/v3/place/around"
    AMAP_STATIC_MAP_URL: str = "https://restapi.amap.com/v3/staticmap"
    DASHSCOPE_CHAT_URL: str = (
        "https://dashscope.aliyuncs.com/compatible-mode/v1/chat/completions"
    )
    HTTP_TIMEOUT_SECONDS: float = Field(default=15.0, gt=0.0)

    # ── HTTP boundary ───────────────────────────────────────────────────
    CORS_ORIGINS: str = "*"
    AI_FAILURE_STATUS_CODE: int = Field(default=200, ge=200, le=599)
    AI_FAILURE_TEXT_STATUS_CODE: int = Field(default=500, ge=200, le=599)

    @property
    def cors_origin_list(self) -> List[str]:
        """Parse the comma-separated CORS_ORIGINS string into a list."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def pipeline_config(self) -> PipelineConfig:
        """Freeze the pipeline-relevant subset of the settings."""
        return PipelineConfig(
            username=self.APP_USERNAME,
            keywords=self.DEFAULT_KEYWORDS,
            city=self.DEFAULT_CITY,
            amap_api_key=self.AMAP_API_KEY,
            qwen_api_key=self.DASHSCOPE_API_KEY,
            radius=self.SEARCH_RADIUS,
            food_types=self.FOOD_TYPES,
            max_results=self.MAX_FOOD_RESULTS,
            qwen_model=self.QWEN_MODEL,
            prompt_venue_limit=self.PROMPT_VENUE_LIMIT,
            input_tips_url=self.AMAP_INPUT_TIPS_URL,
            place_around_url=self.AMAP_PLACE_AROUND_URL,
            chat_url=self.DASHSCOPE_CHAT_URL,
        )


@lru_cache()
def get_settings() -> Settings:
    """Return a cached Settings instance (created once per process)."""
    return Settings()
