"""
Tests for VerificationStateMachine: transition table, passing-edge detection,
stale response rejection and the access decision.
"""

from __future__ import annotations

import pytest

from backend_passport_gate.core.exceptions import StaleResponse
from backend_passport_gate.scoring.models import ScoreOrigin, ScoreReading
from backend_passport_gate.verification.machine import VerificationStateMachine
from backend_passport_gate.verification.state import StateKind

ADDR_A = "0xabc0000000000000000000000000000000000001"
ADDR_B = "0xdef0000000000000000000000000000000000002"


def client(address: str, score: float) -> ScoreReading:
    return ScoreReading.from_score(address, score, ScoreOrigin.CLIENT)


def server(address: str, score: float, verified: bool = True) -> ScoreReading:
    return ScoreReading(address, score, verified and score >= 20.0, ScoreOrigin.SERVER)


@pytest.fixture
def machine() -> VerificationStateMachine:
    return VerificationStateMachine()


def test_initial_state_is_disconnected_and_locked(machine):
    assert machine.state.kind is StateKind.DISCONNECTED
    assert machine.access_granted is False
    assert machine.history == []


def test_connect_enters_client_checking(machine):
    t = machine.on_connection(ADDR_A.upper().replace("0X", "0x"), True)
    assert t.current.kind is StateKind.CLIENT_CHECKING
    assert t.current.address == ADDR_A
    assert t.issue_server_verify is False


def test_connected_flag_false_stays_disconnected(machine):
    t = machine.on_connection(ADDR_A, False)
    assert t.changed is False
    assert machine.state.kind is StateKind.DISCONNECTED


def test_reconnect_same_address_is_noop(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    t = machine.on_connection(ADDR_A, True)
    assert t.changed is False
    assert machine.state.kind is StateKind.CLIENT_PASSING_AWAITING_SERVER


def test_client_failing(machine):
    machine.on_connection(ADDR_A, True)
    t = machine.on_client_result(client(ADDR_A, 12.0))
    assert t.current.kind is StateKind.CLIENT_FAILING
    assert t.current.score == 12.0
    assert t.issue_server_verify is False
    assert machine.access_granted is False


def test_client_passing_issues_verify_once(machine):
    """The verify request fires on the passing edge only; repeats are advisory updates."""
    machine.on_connection(ADDR_A, True)
    first = machine.on_client_result(client(ADDR_A, 25.0))
    second = machine.on_client_result(client(ADDR_A, 26.0))
    third = machine.on_client_result(client(ADDR_A, 25.0))

    assert first.issue_server_verify is True
    assert first.current.kind is StateKind.CLIENT_PASSING_AWAITING_SERVER
    assert second.issue_server_verify is False
    assert third.issue_server_verify is False
    assert machine.state.client_score == 25.0
    assert sum(t.issue_server_verify for t in machine.history) == 1


def test_failing_then_passing_is_an_edge(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 12.0))
    t = machine.on_client_result(client(ADDR_A, 21.0))
    assert t.issue_server_verify is True
    assert t.current.kind is StateKind.CLIENT_PASSING_AWAITING_SERVER


def test_server_verified_unlocks(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    t = machine.on_server_result(server(ADDR_A, 25.5))
    assert t.current.kind is StateKind.SERVER_VERIFIED
    assert machine.state.verified_score == 25.5
    assert machine.access_granted is True


def test_server_verified_false_rejects(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    t = machine.on_server_result(server(ADDR_A, 15.0, verified=False))
    assert t.current.kind is StateKind.SERVER_REJECTED_OR_ERRORED
    assert machine.access_granted is False
    assert machine.state.verified_score is None


def test_server_verified_true_but_below_threshold_rejects(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    machine.on_server_result(ScoreReading(ADDR_A, 19.0, False, ScoreOrigin.SERVER))
    assert machine.state.kind is StateKind.SERVER_REJECTED_OR_ERRORED


def test_server_error_rejects(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    t = machine.on_server_error(ADDR_A, RuntimeError("connection reset"))
    assert t.current.kind is StateKind.SERVER_REJECTED_OR_ERRORED
    assert t.current.error == "connection reset"
    assert t.current.score is None


def test_server_verified_requires_client_pass_first(machine):
    """A server answer with no outstanding request (no client pass yet) is discarded."""
    machine.on_connection(ADDR_A, True)
    with pytest.raises(StaleResponse):
        machine.on_server_result(server(ADDR_A, 30.0))
    assert machine.state.kind is StateKind.CLIENT_CHECKING
    machine.on_client_result(client(ADDR_A, 10.0))
    with pytest.raises(StaleResponse):
        machine.on_server_result(server(ADDR_A, 30.0))
    assert machine.state.kind is StateKind.CLIENT_FAILING


def test_client_score_never_unlocks(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 99.0))
    assert machine.state.client_score == 99.0
    assert machine.access_granted is False


def test_address_change_discards_verified(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    machine.on_server_result(server(ADDR_A, 25.0))
    assert machine.access_granted is True

    t = machine.on_connection(ADDR_B, True)

    assert t.current.kind is StateKind.CLIENT_CHECKING
    assert t.current.address == ADDR_B
    assert machine.access_granted is False
    assert machine.state_sequence()[-3:] == [
        StateKind.SERVER_VERIFIED,
        StateKind.DISCONNECTED,
        StateKind.CLIENT_CHECKING,
    ]


def test_disconnect_from_any_state(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    t = machine.on_connection(None, False)
    assert t.current.kind is StateKind.DISCONNECTED
    assert t.current.address is None
    assert machine.access_granted is False


def test_stale_server_response_after_switch(machine):
    """A response tagged with the old address never mutates the new session."""
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    machine.on_connection(ADDR_B, True)
    before = machine.state

    with pytest.raises(StaleResponse) as exc_info:
        machine.on_server_result(server(ADDR_A, 25.0))

    assert exc_info.value.expected == ADDR_B
    assert exc_info.value.received == ADDR_A
    assert machine.state == before


def test_stale_generation_same_address(machine):
    """A → B → A: a reply for the first A attempt is discarded by generation."""
    machine.on_connection(ADDR_A, True)
    old_generation = machine.state.generation
    machine.on_client_result(client(ADDR_A, 25.0), generation=old_generation)
    machine.on_connection(ADDR_B, True)
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0), generation=machine.state.generation)

    with pytest.raises(StaleResponse):
        machine.on_server_result(server(ADDR_A, 25.0), generation=old_generation)
    assert machine.state.kind is StateKind.CLIENT_PASSING_AWAITING_SERVER

    machine.on_server_result(server(ADDR_A, 25.0), generation=machine.state.generation)
    assert machine.access_granted is True


def test_stale_client_result_when_disconnected(machine):
    with pytest.raises(StaleResponse):
        machine.on_client_result(client(ADDR_A, 25.0))


def test_client_error_keeps_kind(machine):
    machine.on_connection(ADDR_A, True)
    t = machine.on_client_error(ADDR_A, "Scoring service timed out")
    assert t.current.kind is StateKind.CLIENT_CHECKING
    assert t.current.error == "Scoring service timed out"


def test_rejected_then_failing_then_passing_reissues(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    machine.on_server_result(server(ADDR_A, 15.0, verified=False))

    still = machine.on_client_result(client(ADDR_A, 25.0))
    assert still.issue_server_verify is False
    assert machine.state.kind is StateKind.SERVER_REJECTED_OR_ERRORED

    machine.on_client_result(client(ADDR_A, 10.0))
    assert machine.state.kind is StateKind.CLIENT_FAILING
    again = machine.on_client_result(client(ADDR_A, 22.0))
    assert again.issue_server_verify is True


def test_verified_ignores_later_failing_client_reading(machine):
    machine.on_connection(ADDR_A, True)
    machine.on_client_result(client(ADDR_A, 25.0))
    machine.on_server_result(server(ADDR_A, 25.0))
    machine.on_client_result(client(ADDR_A, 5.0))
    assert machine.access_granted is True
    assert machine.state.client_score == 5.0


def test_wrong_origin_rejected(machine):
    machine.on_connection(ADDR_A, True)
    with pytest.raises(ValueError):
        machine.on_client_result(server(ADDR_A, 25.0))
    with pytest.raises(ValueError):
        machine.on_server_result(client(ADDR_A, 25.0))


def test_history_is_bounded():
    machine = VerificationStateMachine(history_limit=3)
    machine.on_connection(ADDR_A, True)
    for score in (1.0, 2.0, 3.0, 4.0):
        machine.on_client_result(client(ADDR_A, score))
    assert len(machine.history) == 3
