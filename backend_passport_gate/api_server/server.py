"""
FastAPI server — trusted score verification.

Exposes POST /verify-score (also under /api for the web page's original path)
and GET /health. Does not store anything; each request is an independent
lookup against the scoring service. Config via env (see config.env).
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from backend_passport_gate import __version__
from backend_passport_gate.api_server.verify_score import router as verify_router
from backend_passport_gate.config import get_settings
from backend_passport_gate.gate_logging import get_logger
from backend_passport_gate.scoring.models import PASSING_THRESHOLD

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log effective configuration (without secrets) on startup."""
    settings = get_settings()
    logger.info(
        "api_starting",
        version=__version__,
        scorer_id=settings.passport_scorer_id or None,
        server_key_configured=bool(settings.passport_server_api_key),
        passport_api_base_url=settings.passport_api_base_url,
        threshold=PASSING_THRESHOLD,
    )
    if not settings.passport_server_api_key or not settings.passport_scorer_id:
        logger.warning("api_server_credentials_missing", need="PASSPORT_SERVER_API_KEY, PASSPORT_SCORER_ID")
    yield
    logger.info("api_stopped")


app = FastAPI(
    title="Backend Passport Gate API",
    description="Server-side Passport score verification for score-gated access.",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(verify_router)
app.include_router(verify_router, prefix="/api", include_in_schema=False)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )
