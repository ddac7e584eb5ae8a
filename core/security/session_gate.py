"""Session gate for the HTTP boundary.

Every data endpoint passes the caller's session token through a gate
before touching the sync service:
- StaticTokenGate: accepts a fixed set of tokens (SESSION_TOKENS)
- AllowAllGate: development mode, accepts any request
"""

import hmac
from abc import ABC, abstractmethod
from typing import Iterable, Optional

from core.config import Settings
from core.errors import Unauthorized
from core.observability.logging import get_logger

logger = get_logger(__name__)


class SessionGate(ABC):
    """Decides whether a request may read consolidated data."""

    @abstractmethod
    def authorize(self, token: Optional[str]) -> None:
        """Return normally when the token is accepted.

        Raises:
            Unauthorized: Missing or invalid token
        """


class StaticTokenGate(SessionGate):
    """Accepts only tokens from a configured set."""

    def __init__(self, tokens: Iterable[str]):
        self._tokens = [t for t in tokens if t]
        if not self._tokens:
            raise ValueError("StaticTokenGate needs at least one token")

    def authorize(self, token: Optional[str]) -> None:
        if not token:
            raise Unauthorized("Missing session token")
        # compare_digest on every candidate keeps timing independent of the match
        matched = False
        for candidate in self._tokens:
            if hmac.compare_digest(candidate.encode("utf-8"), token.encode("utf-8")):
                matched = True
        if not matched:
            raise Unauthorized("Invalid session token")


class AllowAllGate(SessionGate):
    """Development gate: every request is accepted."""

    def authorize(self, token: Optional[str]) -> None:
        return None


def build_gate(settings: Settings) -> SessionGate:
    """Pick the gate for the configured environment.

    Raises:
        ValueError: No tokens configured outside development mode
    """
    if settings.development_mode:
        logger.warning("DEVELOPMENT_MODE enabled: session gate accepts every request")
        return AllowAllGate()
    if not settings.session_tokens:
        raise ValueError(
            "SESSION_TOKENS environment variable not set. "
            "Set a comma-separated list of tokens or enable DEVELOPMENT_MODE"
        )
    return StaticTokenGate(settings.session_tokens)
