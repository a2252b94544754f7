"""
Application-level exceptions.

Every failure in the verification pipeline is recovered locally into a state
transition or a display field; these types let each layer say which kind of
failure it saw.
"""

from __future__ import annotations


class PassportGateError(Exception):
    """Base class for all gate errors."""


class ConfigurationError(PassportGateError):
    """Required configuration (API key, scorer ID) is missing."""


class InvalidAddress(PassportGateError, ValueError):
    """Address is not a 0x-prefixed, 40 hex character wallet address."""


class WalletUnavailable(PassportGateError):
    """No injected wallet (or no connected account) when a signature was requested."""


# Name used by the scoring widget's integration docs
NoWalletAvailable = WalletUnavailable


class ClientScoreFetchError(PassportGateError):
    """Client-side score lookup failed. Display only; never changes the access decision."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ServerVerifyError(PassportGateError):
    """Server verification failed: transport error, non-2xx, bad body or unparseable score."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ScoringServiceError(PassportGateError):
    """The external scoring service could not be queried or returned an unusable body."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class StaleResponse(PassportGateError):
    """A response arrived for an address that is no longer the live session address."""

    def __init__(self, expected: str | None, received: str) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f"stale response for {received} (live address: {expected})")
