"""
Reconciles the optimistic client score with the authoritative server
verification.

Pure and synchronous: every event returns a Transition and the caller decides
what to schedule. The server call is requested only on the client passing
edge (CLIENT_CHECKING / CLIENT_FAILING -> CLIENT_PASSING_AWAITING_SERVER), so
re-delivering the same client reading never asks for a second verification.

Every completion carries the address (and optionally the generation) it was
issued for. A completion that does not match the live session raises
StaleResponse and leaves the state untouched.

    any                      --disconnect-->        DISCONNECTED
    DISCONNECTED             --connect(a)-->        CLIENT_CHECKING
    CLIENT_CHECKING/FAILING  --client fail-->       CLIENT_FAILING(score)
    CLIENT_CHECKING/FAILING  --client pass-->       CLIENT_PASSING_AWAITING_SERVER  (issue verify)
    AWAITING_SERVER          --server pass-->       SERVER_VERIFIED(score)
    AWAITING_SERVER          --server fail/error--> SERVER_REJECTED_OR_ERRORED
    SERVER_REJECTED          --client fail-->       CLIENT_FAILING(score)
    any connected            --switch(b)-->         DISCONNECTED -> CLIENT_CHECKING(b)
"""

from __future__ import annotations

from collections import deque

from backend_passport_gate.core.address import normalize_address
from backend_passport_gate.core.exceptions import StaleResponse
from backend_passport_gate.gate_logging import get_logger
from backend_passport_gate.scoring.models import ScoreOrigin, ScoreReading
from backend_passport_gate.verification.state import (
    DISCONNECTED,
    StateKind,
    Transition,
    VerificationState,
)

logger = get_logger(__name__)

DEFAULT_HISTORY_LIMIT = 256

_CLIENT_EDGE_STATES = (StateKind.CLIENT_CHECKING, StateKind.CLIENT_FAILING)


class VerificationStateMachine:
    """Single source of truth for "is access granted" for one session."""

    def __init__(self, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        self._state: VerificationState = DISCONNECTED
        self._generation = 0
        self._history: deque[Transition] = deque(maxlen=max(1, history_limit))

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def state(self) -> VerificationState:
        return self._state

    @property
    def access_granted(self) -> bool:
        return self._state.access_granted

    @property
    def history(self) -> list[Transition]:
        """Applied transitions, oldest first (bounded)."""
        return list(self._history)

    def state_sequence(self) -> list[StateKind]:
        """Kinds visited, starting from the first transition's origin. No-op events are skipped."""
        changed = [t for t in self._history if t.changed]
        if not changed:
            return [self._state.kind]
        kinds = [changed[0].previous.kind]
        for t in changed:
            if t.current.kind != kinds[-1]:
                kinds.append(t.current.kind)
        return kinds

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_connection(self, address: str | None, connected: bool) -> Transition:
        """
        Apply the Address Source's current (address, connected) pair.

        A new or different address discards everything known about the old
        one, including a SERVER_VERIFIED result, and restarts the pipeline.
        """
        current = self._state
        if not connected or not address:
            if current.kind is StateKind.DISCONNECTED:
                return self._noop("disconnected")
            self._generation += 1
            return self._move("disconnected", DISCONNECTED.evolve(generation=self._generation))

        address = normalize_address(address)
        if current.kind is not StateKind.DISCONNECTED and current.address == address:
            return self._noop("connected")

        if current.kind is not StateKind.DISCONNECTED:
            self._generation += 1
            self._move("address_changed", DISCONNECTED.evolve(generation=self._generation))

        self._generation += 1
        return self._move(
            "connected",
            VerificationState(
                kind=StateKind.CLIENT_CHECKING,
                address=address,
                generation=self._generation,
            ),
        )

    def on_client_result(self, reading: ScoreReading, generation: int | None = None) -> Transition:
        """Apply a client score. Requests server verification only on the passing edge."""
        if reading.origin is not ScoreOrigin.CLIENT:
            raise ValueError("on_client_result expects a CLIENT reading")
        self._ensure_live(reading.address, generation)
        current = self._state

        if current.kind in _CLIENT_EDGE_STATES:
            if reading.passing:
                return self._move(
                    "client_passing",
                    current.evolve(
                        kind=StateKind.CLIENT_PASSING_AWAITING_SERVER,
                        score=None,
                        client_score=reading.score,
                        error=None,
                    ),
                    issue_server_verify=True,
                )
            return self._move(
                "client_failing",
                current.evolve(
                    kind=StateKind.CLIENT_FAILING,
                    score=reading.score,
                    client_score=reading.score,
                    error=None,
                ),
            )

        if current.kind is StateKind.SERVER_REJECTED_OR_ERRORED and not reading.passing:
            # Back on the failing path, so the next client pass is a fresh edge
            return self._move(
                "client_failing",
                current.evolve(
                    kind=StateKind.CLIENT_FAILING,
                    score=reading.score,
                    client_score=reading.score,
                    error=None,
                ),
            )

        # Advisory only: the server result (or pending call) stays authoritative
        return self._move("client_refreshed", current.evolve(client_score=reading.score))

    def on_client_error(self, address: str, error: BaseException | str, generation: int | None = None) -> Transition:
        """Record a client fetch failure for display. The state kind does not change."""
        self._ensure_live(address, generation)
        return self._move("client_error", self._state.evolve(error=str(error) or type(error).__name__))

    def on_server_result(self, reading: ScoreReading, generation: int | None = None) -> Transition:
        """Apply the server verification outcome for the outstanding request."""
        if reading.origin is not ScoreOrigin.SERVER:
            raise ValueError("on_server_result expects a SERVER reading")
        self._ensure_awaiting(reading.address, generation)
        current = self._state
        if reading.passing:
            return self._move(
                "server_verified",
                current.evolve(kind=StateKind.SERVER_VERIFIED, score=reading.score, error=None),
            )
        return self._move(
            "server_rejected",
            current.evolve(
                kind=StateKind.SERVER_REJECTED_OR_ERRORED,
                score=reading.score,
                error="Server verification did not confirm a passing score",
            ),
        )

    def on_server_error(self, address: str, error: BaseException | str, generation: int | None = None) -> Transition:
        """Apply a failed server verification (network, non-2xx, unparseable score)."""
        self._ensure_awaiting(address, generation)
        return self._move(
            "server_error",
            self._state.evolve(
                kind=StateKind.SERVER_REJECTED_OR_ERRORED,
                score=None,
                error=str(error) or type(error).__name__,
            ),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_live(self, address: str, generation: int | None) -> None:
        current = self._state
        if (
            current.kind is StateKind.DISCONNECTED
            or current.address != address
            or (generation is not None and generation != current.generation)
        ):
            raise StaleResponse(current.address, address)

    def _ensure_awaiting(self, address: str, generation: int | None) -> None:
        self._ensure_live(address, generation)
        if self._state.kind is not StateKind.CLIENT_PASSING_AWAITING_SERVER:
            # No verification outstanding for this attempt
            raise StaleResponse(self._state.address, address)

    def _noop(self, event: str) -> Transition:
        return Transition(event=event, previous=self._state, current=self._state)

    def _move(
        self,
        event: str,
        new_state: VerificationState,
        issue_server_verify: bool = False,
    ) -> Transition:
        transition = Transition(
            event=event,
            previous=self._state,
            current=new_state,
            issue_server_verify=issue_server_verify,
        )
        self._state = new_state
        self._history.append(transition)
        if transition.previous.kind != new_state.kind:
            logger.info(
                "verification_transition",
                generation=new_state.generation,
                **transition.to_dict(),
            )
        return transition
