"""
Session Resolution Module
=========================

Builds the per-request ``Session`` from introspection claims and carries it
through the request pipeline in a typed ``AuthContext``.

Sessions are never stored server-side: every request carrying an
``access_token`` cookie is re-validated against the provider and the
resulting session lives only as long as the request.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from pkce_auth.models import IntrospectionClaims, Session, SessionUser


# =============================================================================
# Request Context
# =============================================================================

@dataclass
class AuthContext:
    """Authentication state attached to ``request.state.auth``."""

    session: Optional[Session] = None

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None


def get_auth_context(request: Request) -> AuthContext:
    """
    Return the context set by ``AuthFlowMiddleware``.

    Requests that never went through the middleware get an empty context,
    so they are treated as unauthenticated.
    """
    context = getattr(request.state, "auth", None)
    if isinstance(context, AuthContext):
        return context
    return AuthContext()


def get_session(request: Request) -> Optional[Session]:
    """
    FastAPI dependency for optional authentication.

    Usage:
        @app.get("/me")
        async def me(session: Optional[Session] = Depends(get_session)):
            ...
    """
    return get_auth_context(request).session


# =============================================================================
# Session Construction
# =============================================================================

def resolve_session(claims: IntrospectionClaims, access_token: str) -> Session:
    """
    Create a session from active introspection claims.

    Args:
        claims: Claims of an active token
        access_token: The token the claims belong to

    Returns:
        Session with the projected user, expiry and raw claims
    """
    user = SessionUser(
        id=claims.sub,
        username=claims.username,
        name=claims.name,
        family_name=claims.family_name,
        given_name=claims.given_name,
        preferred_username=claims.preferred_username,
        email=claims.email,
        email_verified=claims.email_verified,
        updated_at=claims.updated_at,
    )

    return Session(
        user=user,
        expires_at=claims.exp,
        access_token=access_token,
        info=dict(claims.raw),
    )
