"""
The connected wallet address and its connection flag.

Stands in for the wallet-connection library: whoever owns the connection
calls connect()/disconnect(), and subscribers (the verification session) are
notified synchronously with the new (address, connected) pair.
"""

from __future__ import annotations

from typing import Callable

from backend_passport_gate.core.address import normalize_address
from backend_passport_gate.gate_logging import get_logger

logger = get_logger(__name__)

AddressListener = Callable[[str | None, bool], None]


class AddressSource:
    """Observable (address, connected) pair. Addresses are stored normalized."""

    def __init__(self, address: str | None = None, connected: bool | None = None) -> None:
        self._address = normalize_address(address) if address else None
        self._connected = bool(self._address) if connected is None else bool(connected and self._address)
        self._listeners: list[AddressListener] = []

    @property
    def address(self) -> str | None:
        return self._address

    @property
    def is_connected(self) -> bool:
        return self._connected

    def subscribe(self, listener: AddressListener) -> Callable[[], None]:
        """Register listener; returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def connect(self, address: str) -> None:
        """Connect (or switch to) address. Raises InvalidAddress for malformed input."""
        address = normalize_address(address)
        if self._connected and self._address == address:
            return
        previous = self._address
        self._address = address
        self._connected = True
        logger.info("wallet_connected", address=address, previous_address=previous)
        self._notify()

    def disconnect(self) -> None:
        if not self._connected and self._address is None:
            return
        logger.info("wallet_disconnected", address=self._address)
        self._address = None
        self._connected = False
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._address, self._connected)
