"""
api/dependencies.py
───────────────────
FastAPI dependencies shared by the routers.

Both resources are created once in the application lifespan and only read
afterwards, so every request sees the same pool and the same base config.
"""

import httpx
from fastapi import Request

from models.pipeline import PipelineConfig


def get_http_client(request: Request) -> httpx.AsyncClient:
    """The pooled upstream client opened in ``main.lifespan``."""
    return request.app.state.http_client


def get_pipeline_config(request: Request) -> PipelineConfig:
    """The frozen base configuration; routes derive per-request copies."""
    return request.app.state.pipeline_config
