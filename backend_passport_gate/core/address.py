"""Wallet address validation utilities."""

from __future__ import annotations

import re

from backend_passport_gate.core.exceptions import InvalidAddress

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(address: str | None) -> str:
    """
    Return the canonical form of an Ethereum address: stripped and lowercased.

    Raises InvalidAddress unless the result is 0x followed by 40 hex characters.
    """
    if address is None:
        raise InvalidAddress("address must be non-empty")
    candidate = address.strip().lower()
    if not candidate:
        raise InvalidAddress("address must be non-empty")
    if not _ADDRESS_RE.match(candidate):
        raise InvalidAddress(f"Invalid wallet address: {address[:16]}")
    return candidate


def is_valid_address(address: str | None) -> bool:
    """Return True if address normalizes to a valid wallet address."""
    try:
        normalize_address(address)
        return True
    except InvalidAddress:
        return False


def short_address(address: str) -> str:
    """Abbreviate an address for display: first 8 and last 6 characters."""
    if len(address) <= 14:
        return address
    return f"{address[:8]}...{address[-6:]}"
