"""
Session gate for protected routes.

``require_session`` builds a FastAPI dependency that lets a request through
only when ``AuthFlowMiddleware`` resolved a session for it. The gate makes
no network or cookie calls of its own.
"""

from typing import Callable, Optional

from fastapi import Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from pkce_auth.auth.exceptions import SessionRequired
from pkce_auth.auth.session import get_auth_context
from pkce_auth.models import Session


def require_session(redirect_to: Optional[str] = None) -> Callable[[Request], Session]:
    """
    Create a dependency that requires an authenticated session.

    Usage in routes:
        @app.get("/protected")
        async def protected(session: Session = Depends(require_session())):
            return {"user": session.user.id}

    Args:
        redirect_to: Where to send unauthenticated requests. When omitted
            they get a 401 instead.

    Returns:
        Dependency returning the request's Session
    """

    def dependency(request: Request) -> Session:
        session = get_auth_context(request).session
        if session is None:
            raise SessionRequired(redirect_to)
        return session

    return dependency


async def session_required_handler(request: Request, exc: SessionRequired) -> Response:
    """Render ``SessionRequired`` as a redirect or a plain-text 401."""
    if exc.redirect_to:
        return RedirectResponse(url=exc.redirect_to, status_code=302)
    return PlainTextResponse("Unauthorized", status_code=401)
