"""Security module - session gate for the HTTP boundary."""

from core.security.session_gate import (
    SessionGate,
    StaticTokenGate,
    AllowAllGate,
    build_gate,
)

__all__ = [
    "SessionGate",
    "StaticTokenGate",
    "AllowAllGate",
    "build_gate",
]
