"""
main.py
───────
NearBite — Location-aware food recommendation service
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime

import httpx
from fastapi import FastAPI

from api.v1.recommendations import router as recommendations_router
from core.config import get_settings
from core.security import setup_security

SERVICE_NAME = "food-recommendation-api"
VERSION = "1.0.0"

# ── Logging ─────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger("nearbite")

# ── Settings ────────────────────────────────────────────────────────────────
settings = get_settings()


# ── Lifespan (startup / shutdown) ──────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the pooled upstream HTTP client and the base pipeline config."""
    app.state.pipeline_config = settings.pipeline_config()
    app.state.http_client = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    logger.info(
        "Upstream client ready ✓ (timeout=%.0fs, user=%s, city=%s, model=%s)",
        settings.HTTP_TIMEOUT_SECONDS,
        settings.APP_USERNAME,
        settings.DEFAULT_CITY,
        settings.QWEN_MODEL,
    )

    yield  # ← application runs here

    logger.info("Closing upstream client …")
    await app.state.http_client.aclose()
    logger.info("Upstream client closed ✓")


# ── App factory ─────────────────────────────────────────────────────────────
app = FastAPI(
    title="NearBite",
    version=VERSION,
    description="Geocode a place, find food nearby, and ask an LLM what to eat — API",
    lifespan=lifespan,
)

# Wire security middleware (headers, CORS, exception handler)
setup_security(app)

# ── Routers ─────────────────────────────────────────────────────────────────
app.include_router(recommendations_router, prefix="/api/v1")


# ── Health check ────────────────────────────────────────────────────────────
@app.get("/health", tags=["ops"])
async def health_check():
    """Lightweight liveness probe."""
    return {
        "status": "ok",
        "service": SERVICE_NAME,
        "version": VERSION,
        "timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="127.0.0.1", port=8080)
