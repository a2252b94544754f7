"""
Optimistic score lookup from the caller's environment.

Uses the public (client) Passport key. The result is advisory: it drives the
status panel and decides when to ask the server, but never unlocks access.
"""

from __future__ import annotations

from typing import Protocol

import httpx

from backend_passport_gate.config.settings import Settings
from backend_passport_gate.core.address import normalize_address
from backend_passport_gate.core.exceptions import ClientScoreFetchError, ScoringServiceError
from backend_passport_gate.gate_logging import get_logger
from backend_passport_gate.scoring.models import ScoreOrigin, ScoreReading
from backend_passport_gate.scoring.passport_client import PassportScoreClient

logger = get_logger(__name__)


class ScoreFetcher(Protocol):
    async def fetch(self, address: str) -> ScoreReading: ...


class ClientScoreFetcher:
    """Fetch a CLIENT-origin ScoreReading for an address."""

    def __init__(self, passport: PassportScoreClient) -> None:
        self._passport = passport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ClientScoreFetcher":
        settings.require_client_credentials()
        return cls(
            PassportScoreClient(
                settings.passport_api_key,
                settings.passport_scorer_id,
                base_url=settings.passport_api_base_url,
                timeout_sec=settings.passport_timeout_sec,
                transport=transport,
            )
        )

    async def fetch(self, address: str) -> ScoreReading:
        """
        Return {score, passing} for address with passing derived from the
        shared threshold. Raises ClientScoreFetchError on any service failure.
        """
        address = normalize_address(address)
        try:
            result = await self._passport.get_score(address)
        except ScoringServiceError as e:
            logger.warning("client_score_fetch_failed", address=address, error=str(e))
            raise ClientScoreFetchError(str(e), status_code=e.status_code) from e
        reading = ScoreReading.from_score(address, result.score, ScoreOrigin.CLIENT)
        if result.service_passing is not None and result.service_passing != reading.passing:
            # Scorer configured with a different threshold than ours
            logger.warning(
                "client_threshold_mismatch",
                address=address,
                score=result.score,
                service_passing=result.service_passing,
                passing=reading.passing,
            )
        logger.info("client_score_fetched", address=address, score=reading.score, passing=reading.passing)
        return reading
