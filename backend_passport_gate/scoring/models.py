"""
Score readings and the shared pass/fail policy.

PASSING_THRESHOLD is the single policy boundary used by the client fetcher,
the server endpoint and the gateway. Nothing else may compare a score
against a literal.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

PASSING_THRESHOLD = 20.0


class ScoreOrigin(str, Enum):
    """Where a reading came from. Only SERVER readings can authorize access."""

    CLIENT = "client"
    SERVER = "server"


def is_passing(score: float) -> bool:
    """Return True if score meets the threshold (score >= 20.0)."""
    return score >= PASSING_THRESHOLD


def parse_score(raw: Any) -> float:
    """
    Parse a score as returned by the scoring service or the verify endpoint.

    Accepts numbers and decimal strings ("25.50"). Raises ValueError for
    anything else, including booleans, NaN and infinities.
    """
    if raw is None or isinstance(raw, bool):
        raise ValueError(f"not a score: {raw!r}")
    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, str):
        value = float(raw.strip())
    else:
        raise ValueError(f"not a score: {raw!r}")
    if math.isnan(value) or math.isinf(value):
        raise ValueError(f"not a finite score: {raw!r}")
    return value


@dataclass(frozen=True)
class ScoreReading:
    """One score observation for one address."""

    address: str
    score: float
    passing: bool
    origin: ScoreOrigin

    @classmethod
    def from_score(cls, address: str, score: float, origin: ScoreOrigin) -> "ScoreReading":
        """Build a reading whose passing flag is derived from the shared threshold."""
        return cls(address=address, score=score, passing=is_passing(score), origin=origin)

    def to_dict(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "score": self.score,
            "passing": self.passing,
            "origin": self.origin.value,
        }
