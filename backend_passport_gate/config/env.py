"""
Environment variable loading for the Passport gate.

- PASSPORT_API_KEY: client-side Passport API key (optimistic check)
- PASSPORT_SCORER_ID: Passport scorer / collection ID
- PASSPORT_SERVER_API_KEY: server-held key for the authoritative check
  (falls back to PASSPORT_API_KEY when unset)
- PASSPORT_API_BASE_URL: Passport API root (default: https://api.passport.xyz)
- VERIFY_URL: server verification endpoint used by the gateway
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

# Project root: config is backend_passport_gate/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_PASSPORT_API_BASE_URL = "https://api.passport.xyz"
DEFAULT_VERIFY_URL = "http://localhost:8000/verify-score"
DEFAULT_PASSPORT_TIMEOUT_SEC = 15.0
DEFAULT_VERIFY_TIMEOUT_SEC = 10.0


def load_gate_env() -> None:
    """Load .env from project root. Safe to call multiple times."""
    from dotenv import load_dotenv

    load_dotenv(_ENV_PATH)


def _env_str(name: str, default: str = "") -> str:
    return (os.getenv(name) or default).strip()


def _env_float(name: str, default: float) -> float:
    raw = _env_str(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def get_passport_api_key() -> str:
    """Return PASSPORT_API_KEY (client-side key), or empty string."""
    load_gate_env()
    return _env_str("PASSPORT_API_KEY")


def get_passport_scorer_id() -> str:
    """Return PASSPORT_SCORER_ID, or empty string."""
    load_gate_env()
    return _env_str("PASSPORT_SCORER_ID")


def get_passport_server_api_key() -> str:
    """
    Return the server-held Passport key.
    Order: PASSPORT_SERVER_API_KEY > PASSPORT_API_KEY.
    """
    load_gate_env()
    return _env_str("PASSPORT_SERVER_API_KEY") or _env_str("PASSPORT_API_KEY")


def get_passport_api_base_url() -> str:
    load_gate_env()
    return _env_str("PASSPORT_API_BASE_URL", DEFAULT_PASSPORT_API_BASE_URL).rstrip("/")


def get_verify_url() -> str:
    """Return VERIFY_URL, the trusted verification endpoint (POST)."""
    load_gate_env()
    return _env_str("VERIFY_URL", DEFAULT_VERIFY_URL)


def get_passport_timeout_sec() -> float:
    load_gate_env()
    return _env_float("PASSPORT_TIMEOUT_SEC", DEFAULT_PASSPORT_TIMEOUT_SEC)


def get_verify_timeout_sec() -> float:
    load_gate_env()
    return _env_float("VERIFY_TIMEOUT_SEC", DEFAULT_VERIFY_TIMEOUT_SEC)
