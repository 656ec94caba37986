"""
PKCE authentication middleware for FastAPI.

Usage:
    from fastapi import Depends, FastAPI
    from pkce_auth import AuthConfig, JWTConfig, Session, create_auth_middleware, require_session

    app = FastAPI()
    create_auth_middleware(app, AuthConfig(
        oauth_url="https://idp.example.com",
        client_id="client-id",
        jwt_config=JWTConfig(key_id="key-id", key=PRIVATE_KEY_PEM, app_id="app-id", client_id="client-id"),
    ))

    @app.get("/protected")
    async def protected(session: Session = Depends(require_session())):
        return {"user": session.user.id}
"""

from .auth import (
    AuthContext,
    AuthFlowMiddleware,
    create_auth_middleware,
    get_auth_context,
    get_session,
    require_session,
)
from .config import AuthConfig, JWTConfig
from .models import Session, SessionUser

__all__ = [
    "AuthConfig",
    "AuthContext",
    "AuthFlowMiddleware",
    "JWTConfig",
    "Session",
    "SessionUser",
    "create_auth_middleware",
    "get_auth_context",
    "get_session",
    "require_session",
]
