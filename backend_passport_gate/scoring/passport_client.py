"""
Passport Stamps API client — async score lookup for one address.

Used from both sides of the pipeline: the client fetcher calls it with the
public (client) key, the verify endpoint calls it with the server-held key.
The scoring algorithm itself is opaque; this module only reads
GET /v2/stamps/{scorer_id}/score/{address}.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import httpx

from backend_passport_gate.config.env import (
    DEFAULT_PASSPORT_API_BASE_URL,
    DEFAULT_PASSPORT_TIMEOUT_SEC,
)
from backend_passport_gate.core.exceptions import ScoringServiceError
from backend_passport_gate.gate_logging import get_logger
from backend_passport_gate.scoring.models import is_passing, parse_score

logger = get_logger(__name__)

SCORE_PATH_TEMPLATE = "/v2/stamps/{scorer_id}/score/{address}"


@dataclass(frozen=True)
class PassportScore:
    """
    Parsed Passport score response.

    raw_score keeps the decimal text exactly as the service sent it so the
    verify endpoint can forward it unchanged. service_passing is the service's
    own passing_score flag; callers use `passing` (shared threshold) instead.
    """

    address: str
    score: float
    raw_score: str
    service_passing: bool | None = None
    threshold: float | None = None
    last_score_timestamp: str | None = None
    expiration_timestamp: str | None = None

    @property
    def passing(self) -> bool:
        return is_passing(self.score)


def parse_passport_response(address: str, payload: Any) -> PassportScore:
    """
    Build a PassportScore from the JSON body. Raises ScoringServiceError when
    the body has no usable score (service-side error field or malformed value).
    """
    if not isinstance(payload, dict):
        raise ScoringServiceError("Scoring service returned a non-object body")
    raw = payload.get("score")
    if raw is None:
        error = payload.get("error") or "score missing from response"
        raise ScoringServiceError(f"Scoring service error: {error}")
    try:
        score = parse_score(raw)
    except ValueError as e:
        raise ScoringServiceError(f"Scoring service returned an invalid score: {raw!r}") from e

    threshold: float | None = None
    if payload.get("threshold") is not None:
        try:
            threshold = parse_score(payload["threshold"])
        except ValueError:
            threshold = None

    service_passing = payload.get("passing_score")
    return PassportScore(
        address=address,
        score=score,
        raw_score=raw.strip() if isinstance(raw, str) else str(raw),
        service_passing=service_passing if isinstance(service_passing, bool) else None,
        threshold=threshold,
        last_score_timestamp=payload.get("last_score_timestamp"),
        expiration_timestamp=payload.get("expiration_timestamp"),
    )


class PassportScoreClient:
    """
    Async client for the Passport score endpoint.

    One httpx.AsyncClient per lookup; no retries. transport is injectable so
    tests can use httpx.MockTransport.
    """

    def __init__(
        self,
        api_key: str,
        scorer_id: str,
        *,
        base_url: str = DEFAULT_PASSPORT_API_BASE_URL,
        timeout_sec: float = DEFAULT_PASSPORT_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._scorer_id = scorer_id
        self._base_url = base_url.rstrip("/")
        self._timeout_sec = timeout_sec
        self._transport = transport

    def score_url(self, address: str) -> str:
        path = SCORE_PATH_TEMPLATE.format(scorer_id=self._scorer_id, address=address)
        return f"{self._base_url}{path}"

    async def get_score(self, address: str) -> PassportScore:
        """Fetch the current score for address. Raises ScoringServiceError on any failure."""
        url = self.score_url(address)
        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_sec),
                transport=self._transport,
                headers={"X-API-KEY": self._api_key, "Accept": "application/json"},
            ) as client:
                resp = await client.get(url)
        except httpx.TimeoutException as e:
            logger.warning("passport_score_timeout", address=address, timeout_sec=self._timeout_sec)
            raise ScoringServiceError("Scoring service timed out") from e
        except httpx.HTTPError as e:
            logger.warning("passport_score_transport_error", address=address, error=str(e))
            raise ScoringServiceError(f"Scoring service unreachable: {e}") from e

        elapsed_ms = round((time.perf_counter() - t0) * 1000, 2)
        if resp.status_code != 200:
            detail = _error_detail(resp)
            logger.warning(
                "passport_score_http_error",
                address=address,
                status_code=resp.status_code,
                detail=detail,
                elapsed_ms=elapsed_ms,
            )
            raise ScoringServiceError(
                f"Scoring service returned HTTP {resp.status_code}: {detail}",
                status_code=resp.status_code,
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise ScoringServiceError("Scoring service returned invalid JSON") from e

        result = parse_passport_response(address, payload)
        logger.debug(
            "passport_score_fetched",
            address=address,
            score=result.score,
            passing=result.passing,
            elapsed_ms=elapsed_ms,
        )
        return result


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)[:200]
    return str(body)[:200]
