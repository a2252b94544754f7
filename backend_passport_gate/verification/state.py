"""
Verification state record.

One VerificationState is live per session. Snapshots are immutable; the state
machine replaces the whole record on every transition so a reader never sees
a half-applied update.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any


class StateKind(str, Enum):
    """Pipeline position for the live address."""

    DISCONNECTED = "disconnected"
    CLIENT_CHECKING = "client_checking"
    CLIENT_FAILING = "client_failing"
    CLIENT_PASSING_AWAITING_SERVER = "client_passing_awaiting_server"
    SERVER_VERIFIED = "server_verified"
    SERVER_REJECTED_OR_ERRORED = "server_rejected_or_errored"


@dataclass(frozen=True)
class VerificationState:
    """
    Snapshot of the verification pipeline for one address.

    score: the score attached to the state itself (client score for
        CLIENT_FAILING, server-confirmed score for SERVER_VERIFIED).
    client_score: latest advisory client reading, for display only.
    error: latest display error (client fetch failure or server rejection reason).
    generation: bumped on every connect/switch; responses carry it back so a
        reply for an earlier attempt on the same address is also discarded.
    """

    kind: StateKind = StateKind.DISCONNECTED
    address: str | None = None
    score: float | None = None
    client_score: float | None = None
    error: str | None = None
    generation: int = 0

    @property
    def access_granted(self) -> bool:
        """Unlocked iff the server confirmed a passing score."""
        return self.kind is StateKind.SERVER_VERIFIED

    @property
    def verified_score(self) -> float | None:
        return self.score if self.kind is StateKind.SERVER_VERIFIED else None

    @property
    def server_pending(self) -> bool:
        return self.kind is StateKind.CLIENT_PASSING_AWAITING_SERVER

    def evolve(self, **changes: Any) -> "VerificationState":
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.kind.value,
            "address": self.address,
            "score": self.score,
            "client_score": self.client_score,
            "error": self.error,
            "access_granted": self.access_granted,
        }


DISCONNECTED = VerificationState()


@dataclass(frozen=True)
class Transition:
    """
    Result of feeding one event to the state machine.

    issue_server_verify is True only on the client passing edge; the session
    driver fires exactly one gateway call for each such transition.
    """

    event: str
    previous: VerificationState
    current: VerificationState
    issue_server_verify: bool = False

    @property
    def changed(self) -> bool:
        return self.previous != self.current

    def to_dict(self) -> dict[str, Any]:
        return {
            "trigger": self.event,
            "address": self.current.address or self.previous.address,
            "from_state": self.previous.kind.value,
            "to_state": self.current.kind.value,
            "issue_server_verify": self.issue_server_verify,
        }
