"""
Access package — presentation of the verification outcome.
"""

from backend_passport_gate.access.gate import AccessPanel, render

__all__ = ["AccessPanel", "render"]
