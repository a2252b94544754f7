"""
Caller side of POST /verify-score.

Sends the address to the trusted endpoint and turns its answer into a
SERVER-origin ScoreReading. passing requires BOTH verified=true and a parsed
score at or above the shared threshold. One request per call, no retries,
bounded by a timeout.
"""

from __future__ import annotations

from typing import Any, Protocol

import httpx

from backend_passport_gate.config.env import DEFAULT_VERIFY_TIMEOUT_SEC, DEFAULT_VERIFY_URL
from backend_passport_gate.config.settings import Settings
from backend_passport_gate.core.address import normalize_address
from backend_passport_gate.core.exceptions import ServerVerifyError
from backend_passport_gate.gate_logging import get_logger
from backend_passport_gate.scoring.models import ScoreOrigin, ScoreReading, is_passing, parse_score

logger = get_logger(__name__)


class Verifier(Protocol):
    async def verify(self, address: str) -> ScoreReading: ...


def reading_from_verify_response(address: str, payload: Any) -> ScoreReading:
    """
    Interpret a {"verified": bool, "score": str} body.

    Raises ServerVerifyError if the body is not an object or the score does
    not parse; both count as "not verified".
    """
    if not isinstance(payload, dict):
        raise ServerVerifyError("Verification response is not a JSON object")
    verified = payload.get("verified") is True
    try:
        score = parse_score(payload.get("score"))
    except ValueError as e:
        raise ServerVerifyError(f"Unparseable score in verification response: {payload.get('score')!r}") from e
    return ScoreReading(
        address=address,
        score=score,
        passing=verified and is_passing(score),
        origin=ScoreOrigin.SERVER,
    )


class ServerVerificationGateway:
    """POST {verify_url} {"address": ...} and return the authoritative reading."""

    def __init__(
        self,
        verify_url: str = DEFAULT_VERIFY_URL,
        *,
        timeout_sec: float = DEFAULT_VERIFY_TIMEOUT_SEC,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._verify_url = verify_url
        self._timeout_sec = timeout_sec
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ServerVerificationGateway":
        return cls(settings.verify_url, timeout_sec=settings.verify_timeout_sec, transport=transport)

    @property
    def verify_url(self) -> str:
        return self._verify_url

    async def verify(self, address: str) -> ScoreReading:
        """
        Ask the trusted endpoint to re-score address.

        Raises ServerVerifyError on timeout, transport failure, non-2xx,
        invalid JSON or an unparseable score.
        """
        address = normalize_address(address)
        logger.info("server_verify_requested", address=address, url=self._verify_url)
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_sec),
                transport=self._transport,
            ) as client:
                resp = await client.post(self._verify_url, json={"address": address})
        except httpx.TimeoutException as e:
            logger.warning("server_verify_timeout", address=address, timeout_sec=self._timeout_sec)
            raise ServerVerifyError("Server verification timed out") from e
        except httpx.HTTPError as e:
            logger.warning("server_verify_transport_error", address=address, error=str(e))
            raise ServerVerifyError(f"Server verification request failed: {e}") from e

        if not resp.is_success:
            logger.warning("server_verify_http_error", address=address, status_code=resp.status_code)
            raise ServerVerifyError(
                f"Server verification returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise ServerVerifyError("Server verification returned invalid JSON") from e

        reading = reading_from_verify_response(address, payload)
        logger.info(
            "server_verify_completed",
            address=address,
            verified=payload.get("verified") is True,
            score=reading.score,
            passing=reading.passing,
        )
        return reading
