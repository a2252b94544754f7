"""
API server package — HTTP interface for the trusted half of the check.

Re-scores an address with server-held credentials so the access decision never
depends on a score the client reported.
"""
