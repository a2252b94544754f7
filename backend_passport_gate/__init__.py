"""
Backend Passport Gate — score-gated access for Ethereum wallets.

Checks a connected wallet's Passport score twice: once from the caller's
environment for a fast optimistic status, and once through a trusted
server endpoint whose answer alone decides whether access unlocks.
"""

__version__ = "0.1.0"
