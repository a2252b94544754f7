"""
Application settings and environment configuration.

Responsibilities:
- Collect configuration from environment variables and .env (via config.env).
- Provide defaults for optional values and validate required credentials.
- Expose typed settings for the client fetcher, gateway and API server.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from backend_passport_gate.config import env
from backend_passport_gate.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class Settings:
    """Typed snapshot of the gate configuration."""

    passport_api_key: str
    passport_scorer_id: str
    passport_server_api_key: str
    passport_api_base_url: str = env.DEFAULT_PASSPORT_API_BASE_URL
    verify_url: str = env.DEFAULT_VERIFY_URL
    passport_timeout_sec: float = env.DEFAULT_PASSPORT_TIMEOUT_SEC
    verify_timeout_sec: float = env.DEFAULT_VERIFY_TIMEOUT_SEC
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "info"

    def require_client_credentials(self) -> None:
        """Raise ConfigurationError unless the client-side key and scorer ID are set."""
        missing = [
            name
            for name, value in (
                ("PASSPORT_API_KEY", self.passport_api_key),
                ("PASSPORT_SCORER_ID", self.passport_scorer_id),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")

    def require_server_credentials(self) -> None:
        """Raise ConfigurationError unless the server-side key and scorer ID are set."""
        missing = [
            name
            for name, value in (
                ("PASSPORT_SERVER_API_KEY", self.passport_server_api_key),
                ("PASSPORT_SCORER_ID", self.passport_scorer_id),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")


def load_settings() -> Settings:
    """Build a fresh Settings from the current environment."""
    env.load_gate_env()
    return Settings(
        passport_api_key=env.get_passport_api_key(),
        passport_scorer_id=env.get_passport_scorer_id(),
        passport_server_api_key=env.get_passport_server_api_key(),
        passport_api_base_url=env.get_passport_api_base_url(),
        verify_url=env.get_verify_url(),
        passport_timeout_sec=env.get_passport_timeout_sec(),
        verify_timeout_sec=env.get_verify_timeout_sec(),
        api_host=os.getenv("API_HOST", "0.0.0.0").strip() or "0.0.0.0",
        api_port=int(os.getenv("API_PORT", "8000").strip() or "8000"),
        log_level=os.getenv("LOG_LEVEL", "info").strip().lower() or "info",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings (cached).

    Tests that change the environment call get_settings.cache_clear().
    """
    return load_settings()
