"""
Configuration management for the Passport gate.

Loads settings from environment variables and the optional project .env.
Exposes a single source of truth for all service configuration.
"""

from backend_passport_gate.config.settings import Settings, get_settings, load_settings  # noqa: F401

__all__ = ["Settings", "get_settings", "load_settings"]
