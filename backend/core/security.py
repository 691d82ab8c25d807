"""
core/security.py
────────────────
Security middleware and exception handlers for NearBite.

Covers:
  • Secure headers — HSTS, X-Frame-Options, CSP via the `secure` library
  • CORS           — FastAPI CORSMiddleware
  • Exception gate — generic 500 responses to prevent info leakage
"""

import logging
from typing import TYPE_CHECKING

import secure
from fastapi import Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = logging.getLogger("nearbite.security")

# ── Settings ────────────────────────────────────────────────────────────────
settings = get_settings()

# ── Secure Headers ──────────────────────────────────────────────────────────
_csp = secure.ContentSecurityPolicy().default_src("'self'")
_hsts = secure.StrictTransportSecurity().max_age(31536000).include_subdomains()
_xfo = secure.XFrameOptions().deny()

secure_headers = secure.Secure(
    csp=_csp,
    hsts=_hsts,
    xfo=_xfo,
)


# ═══════════════════════════════════════════════════════════════════════════
# Public setup function — called once from main.py
# ═══════════════════════════════════════════════════════════════════════════


def setup_security(app: "FastAPI") -> None:
    """Wire every security layer into the FastAPI application."""

    # ── 1. CORS ─────────────────────────────────────────────────────────
    origins = settings.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed requests against a wildcard origin.
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ── 2. Secure headers (HSTS / X-Frame-Options / CSP) ────────────────
    @app.middleware("http")
    async def _set_secure_headers(request: Request, call_next):  # noqa: ANN001
        response = await call_next(request)
        secure_headers.set_headers(response)
        return response

    # ── 3. Global exception handler — suppress internals ────────────────
    @app.exception_handler(Exception)
    async def _global_exception_handler(request: Request, exc: Exception):  # noqa: ANN001, ARG001
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred. Please try again later."},
        )
