from __future__ import annotations

"""
FastAPI router: POST /verify-score.

Trusted side of the dual-phase check. Re-queries the Passport scoring service
with server-held credentials (never the client's key) and answers
{"verified": bool, "score": str}. verified applies the same threshold as the
client fetcher.
"""

import time

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from backend_passport_gate.config import get_settings
from backend_passport_gate.core.address import normalize_address
from backend_passport_gate.core.exceptions import ConfigurationError, InvalidAddress, ScoringServiceError
from backend_passport_gate.gate_logging import get_logger
from backend_passport_gate.scoring.passport_client import PassportScoreClient

logger = get_logger(__name__)

router = APIRouter(tags=["verify-score"])


class VerifyScoreRequest(BaseModel):
    """POST /verify-score body: the address to verify."""

    address: str = Field(..., min_length=1, max_length=64, description="Ethereum wallet address (0x + 40 hex)")


class VerifyScoreResponse(BaseModel):
    """POST /verify-score response: authoritative verdict plus the raw score text."""

    verified: bool = Field(..., description="True iff the server-side score meets the threshold")
    score: str = Field(..., description="Score exactly as returned by the scoring service")


def get_server_passport_client() -> PassportScoreClient:
    """Dependency: Passport client using the server-held key (PASSPORT_SERVER_API_KEY)."""
    settings = get_settings()
    try:
        settings.require_server_credentials()
    except ConfigurationError as e:
        logger.error("verify_score_missing_config", error=str(e))
        raise HTTPException(
            status_code=503,
            detail="Server misconfiguration: PASSPORT_SERVER_API_KEY and PASSPORT_SCORER_ID required",
        ) from e
    return PassportScoreClient(
        settings.passport_server_api_key,
        settings.passport_scorer_id,
        base_url=settings.passport_api_base_url,
        timeout_sec=settings.passport_timeout_sec,
    )


@router.post("/verify-score", response_model=VerifyScoreResponse)
async def verify_score(
    body: VerifyScoreRequest,
    passport: PassportScoreClient = Depends(get_server_passport_client),
) -> VerifyScoreResponse:
    """
    Score the address server-side. 400 for a malformed address, 502 when the
    scoring service fails; callers treat any non-2xx as "not verified".
    """
    t_total = time.perf_counter()
    try:
        address = normalize_address(body.address)
    except InvalidAddress as e:
        logger.warning("verify_score_invalid_address", address=body.address[:16])
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        result = await passport.get_score(address)
    except ScoringServiceError as e:
        logger.warning("verify_score_service_error", address=address, error=str(e), status_code=e.status_code)
        raise HTTPException(status_code=502, detail="Scoring service unavailable") from e

    logger.info(
        "verify_score_completed",
        address=address,
        score=result.score,
        verified=result.passing,
        total_ms=round((time.perf_counter() - t_total) * 1000, 2),
    )
    return VerifyScoreResponse(verified=result.passing, score=result.raw_score)
