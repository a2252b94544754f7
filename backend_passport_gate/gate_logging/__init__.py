"""
Structured logging for Backend Passport Gate.

JSON logs with timestamp, address, event_type and state transition fields.
"""

from backend_passport_gate.gate_logging.logger import bind_address, get_logger

__all__ = ["bind_address", "get_logger"]
