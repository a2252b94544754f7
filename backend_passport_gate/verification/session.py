"""
Drives the verification state machine from the outside world.

Listens to the Address Source, runs the client fetch for each new address,
fires the gateway exactly once for each passing edge the machine reports, and
feeds both completions back tagged with the (address, generation) they were
issued for. Runs on a single asyncio event loop; at most one client fetch and
one server verification are meaningful at any time, and anything answering
for an old address or attempt is discarded by the machine. Disconnecting
cancels whatever is still in flight.

No exception from either fetch escapes: failures become state/display fields.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable

from backend_passport_gate.access.gate import AccessPanel, render
from backend_passport_gate.core.exceptions import ClientScoreFetchError, ServerVerifyError, StaleResponse
from backend_passport_gate.gate_logging import bind_address, get_logger
from backend_passport_gate.scoring.client_fetcher import ScoreFetcher
from backend_passport_gate.verification.gateway import Verifier
from backend_passport_gate.verification.machine import VerificationStateMachine
from backend_passport_gate.verification.state import StateKind, Transition, VerificationState
from backend_passport_gate.wallet.address_source import AddressSource

logger = get_logger(__name__)


class VerificationSession:
    """One connected-wallet session: address source + both fetchers + the machine."""

    def __init__(
        self,
        address_source: AddressSource,
        client_fetcher: ScoreFetcher,
        gateway: Verifier,
        machine: VerificationStateMachine | None = None,
    ) -> None:
        self._address_source = address_source
        self._client_fetcher = client_fetcher
        self._gateway = gateway
        self._machine = machine or VerificationStateMachine()
        self._tasks: set[asyncio.Task[Any]] = set()
        self._unsubscribe: Callable[[], None] | None = None
        self.server_verify_calls = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to the address source and evaluate its current value. Needs a running loop."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self._address_source.subscribe(self._on_address_change)
        self._on_address_change(self._address_source.address, self._address_source.is_connected)

    async def close(self) -> None:
        """Unsubscribe and cancel outstanding fetches."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        tasks = self._cancel_pending()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def __aenter__(self) -> "VerificationSession":
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def wait_idle(self) -> None:
        """Wait until no fetch or verification is outstanding (including ones they schedule)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    @property
    def machine(self) -> VerificationStateMachine:
        return self._machine

    @property
    def state(self) -> VerificationState:
        return self._machine.state

    @property
    def access_granted(self) -> bool:
        return self._machine.access_granted

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def panel(self) -> AccessPanel:
        return render(self._machine.state)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """
        Re-run the client fetch for the live address (e.g. after new stamps).
        Returns False when there is nothing connected to refresh.
        """
        state = self._machine.state
        if state.kind is StateKind.DISCONNECTED or not state.address:
            return False
        self._spawn(self._run_client_fetch(state.address, state.generation))
        return True

    def _on_address_change(self, address: str | None, connected: bool) -> None:
        transition = self._machine.on_connection(address, connected)
        current = transition.current
        if transition.changed and current.kind is StateKind.DISCONNECTED:
            # Nothing may stay in flight for a session that has no address
            self._cancel_pending()
        if transition.changed and current.kind is StateKind.CLIENT_CHECKING and current.address:
            self._spawn(self._run_client_fetch(current.address, current.generation))

    async def _run_client_fetch(self, address: str, generation: int) -> None:
        log = bind_address(address, __name__).bind(generation=generation)
        try:
            reading = await self._client_fetcher.fetch(address)
        except asyncio.CancelledError:
            raise
        except ClientScoreFetchError as e:
            self._apply(self._machine.on_client_error, address, e, generation=generation)
            return
        except Exception as e:
            log.exception("client_fetch_unexpected_error", error=str(e))
            self._apply(self._machine.on_client_error, address, e, generation=generation)
            return

        transition = self._apply(self._machine.on_client_result, reading, generation=generation)
        if transition is not None and transition.issue_server_verify:
            self.server_verify_calls += 1
            log.info("server_verify_dispatched", client_score=reading.score)
            self._spawn(self._run_server_verify(address, generation))

    async def _run_server_verify(self, address: str, generation: int) -> None:
        log = bind_address(address, __name__).bind(generation=generation)
        try:
            reading = await self._gateway.verify(address)
        except asyncio.CancelledError:
            raise
        except ServerVerifyError as e:
            self._apply(self._machine.on_server_error, address, e, generation=generation)
            return
        except Exception as e:
            log.exception("server_verify_unexpected_error", error=str(e))
            self._apply(self._machine.on_server_error, address, e, generation=generation)
            return
        self._apply(self._machine.on_server_result, reading, generation=generation)

    def _apply(self, event: Callable[..., Transition], *args: Any, **kwargs: Any) -> Transition | None:
        try:
            return event(*args, **kwargs)
        except StaleResponse as e:
            logger.debug(
                "stale_response_discarded",
                handler=event.__name__,
                address=e.received,
                live_address=e.expected,
            )
            return None

    def _cancel_pending(self) -> list[asyncio.Task[Any]]:
        """Cancel every outstanding task and stop counting it as pending."""
        tasks = list(self._tasks)
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            logger.info("session_tasks_cancelled", count=len(tasks))
        return tasks

    def _spawn(self, coro: Any) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
