"""
Scoring package — Passport score lookups and the shared pass/fail threshold.
"""

from backend_passport_gate.scoring.models import (
    PASSING_THRESHOLD,
    ScoreOrigin,
    ScoreReading,
    is_passing,
    parse_score,
)

__all__ = ["PASSING_THRESHOLD", "ScoreOrigin", "ScoreReading", "is_passing", "parse_score"]
