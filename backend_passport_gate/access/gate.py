"""Access gate — turns the verification state into the locked/unlocked panel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from backend_passport_gate.scoring.models import PASSING_THRESHOLD
from backend_passport_gate.verification.state import StateKind, VerificationState

STATUS_UNLOCKED = "unlocked"
STATUS_AWAITING_SERVER = "awaiting_server"
STATUS_BELOW_THRESHOLD = "below_threshold"
STATUS_VERIFICATION_FAILED = "verification_failed"
STATUS_CHECKING = "checking"
STATUS_NOT_CONNECTED = "not_connected"

REQUIREMENT = f"Minimum Score Required: {PASSING_THRESHOLD:.2f}"
_BUILD_HINT = f"Build your Unique Humanity Score to {PASSING_THRESHOLD:g} or higher to unlock access to exclusive features."


@dataclass(frozen=True)
class AccessPanel:
    unlocked: bool
    status: str
    title: str
    message: str
    score: float | None = None
    client_score: float | None = None
    error: str | None = None
    requirement: str = REQUIREMENT

    def to_dict(self) -> dict[str, Any]:
        return {
            "unlocked": self.unlocked,
            "status": self.status,
            "title": self.title,
            "message": self.message,
            "score": self.score,
            "client_score": self.client_score,
            "error": self.error,
            "requirement": self.requirement,
        }


def render(state: VerificationState) -> AccessPanel:
    """Always returns a concrete panel; only SERVER_VERIFIED unlocks."""
    kind = state.kind
    if kind is StateKind.SERVER_VERIFIED:
        return AccessPanel(
            unlocked=True,
            status=STATUS_UNLOCKED,
            title="Access Unlocked!",
            message=(
                f"Congratulations! Your Unique Humanity Score of {state.score:.2f} meets our threshold. "
                "You now have access to exclusive features."
            ),
            score=state.score,
            client_score=state.client_score,
        )

    locked = "Access Locked"
    if state.server_pending:
        message = f"Client-side score of {state.client_score:.2f} looks good! Verifying server-side..."
        status = STATUS_AWAITING_SERVER
    elif kind is StateKind.CLIENT_FAILING:
        message = (
            f"Your current score of {state.score:.2f} is below our threshold. "
            f"Build your score to {PASSING_THRESHOLD:g} or higher to unlock exclusive access."
        )
        status = STATUS_BELOW_THRESHOLD
    elif kind is StateKind.SERVER_REJECTED_OR_ERRORED:
        if state.score is not None:
            message = (
                f"Server-side verification returned a score of {state.score:.2f}, which does not meet our threshold. "
                f"Build your score to {PASSING_THRESHOLD:g} or higher to unlock exclusive access."
            )
        else:
            message = "Server-side verification could not be completed. Please try again later."
        status = STATUS_VERIFICATION_FAILED
    elif kind is StateKind.CLIENT_CHECKING:
        message = f"Checking your Passport score... {_BUILD_HINT}"
        status = STATUS_CHECKING
    else:
        message = "Connect your wallet to check your Passport score."
        status = STATUS_NOT_CONNECTED

    return AccessPanel(
        unlocked=False,
        status=status,
        title=locked,
        message=message,
        score=state.score,
        client_score=state.client_score,
        error=state.error,
    )
