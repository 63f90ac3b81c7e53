"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Header, Request

from ..generation import GenerationSession
from ..pipeline import Services

DEFAULT_SESSION_ID = "default"


def get_services(request: Request) -> Services:
    """Dependency to get the application's services."""
    return request.app.state.services


async def get_session(
    request: Request,
    x_session_id: Annotated[str, Header(description="Client generation session")] = DEFAULT_SESSION_ID,
) -> GenerationSession:
    """
    Dependency to get the calling client's generation session.

    Each X-Session-Id gets its own start latch, so a repeated start only
    attaches to a running generation from the same client. Requests without
    the header share the default session.
    """
    sessions = request.app.state.sessions
    session = sessions.get(x_session_id)
    if session is None:
        session = sessions[x_session_id] = request.app.state.services.new_session()
    return session
