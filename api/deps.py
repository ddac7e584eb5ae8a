"""Request dependencies shared by the API routes."""

from typing import Optional

from fastapi import Header, Request

from core.security import SessionGate
from sync import SyncService

SESSION_HEADER = "X-Session-Token"


def get_service(request: Request) -> SyncService:
    return request.app.state.service


async def require_session(
    request: Request,
    x_session_token: Optional[str] = Header(default=None, alias=SESSION_HEADER),
) -> None:
    """Pass the request's session token through the configured gate.

    Raises:
        Unauthorized: Rendered as 401 by the app's exception handler
    """
    gate: SessionGate = request.app.state.gate
    gate.authorize(x_session_token)
