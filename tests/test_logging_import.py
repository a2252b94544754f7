"""
Test that gate_logging can be imported without circular import and logger works.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from gate_logging and use the logger."""
    from backend_passport_gate.gate_logging import get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "debug")
    assert hasattr(logger, "warning")
    assert hasattr(logger, "error")
    logger.info("test_message", key="value")


def test_bind_address_logger():
    """bind_address returns a logger that accepts transition fields."""
    from backend_passport_gate.gate_logging import bind_address

    logger = bind_address("0x" + "1" * 40)
    logger.info("verification_transition", from_state="disconnected", to_state="client_checking")


def test_package_imports_without_cycles():
    """Presentation and verification modules import each other in either order."""
    import importlib

    for name in (
        "backend_passport_gate.access.gate",
        "backend_passport_gate.verification.session",
        "backend_passport_gate.api_server.app",
    ):
        assert importlib.import_module(name) is not None


def test_bind_address_carries_address_and_name():
    """Every event from a bound logger includes the wallet address and module name."""
    from structlog.testing import capture_logs

    from backend_passport_gate.gate_logging import bind_address

    address = "0x" + "2" * 40
    with capture_logs() as logs:
        bind_address(address, "backend_passport_gate.verification.session").info(
            "server_verify_dispatched", client_score=25.0
        )

    assert logs[0]["event"] == "server_verify_dispatched"
    assert logs[0]["address"] == address
    assert logs[0]["logger"] == "backend_passport_gate.verification.session"
    assert logs[0]["client_score"] == 25.0


def test_session_logs_dispatch_with_address():
    """The session logs the server dispatch through an address-bound logger."""
    import asyncio

    from structlog.testing import capture_logs

    from backend_passport_gate.scoring.models import ScoreOrigin, ScoreReading
    from backend_passport_gate.verification.session import VerificationSession
    from backend_passport_gate.wallet import AddressSource

    address = "0x" + "3" * 40

    class Fetcher:
        async def fetch(self, addr):
            return ScoreReading.from_score(addr, 25.0, ScoreOrigin.CLIENT)

    class Gateway:
        async def verify(self, addr):
            return ScoreReading(addr, 25.0, True, ScoreOrigin.SERVER)

    source = AddressSource()
    session = VerificationSession(source, Fetcher(), Gateway())

    async def scenario():
        async with session:
            source.connect(address)
            await session.wait_idle()

    with capture_logs() as logs:
        asyncio.run(scenario())

    dispatched = [e for e in logs if e["event"] == "server_verify_dispatched"]
    assert len(dispatched) == 1
    assert dispatched[0]["address"] == address
    assert dispatched[0]["generation"] == session.state.generation
