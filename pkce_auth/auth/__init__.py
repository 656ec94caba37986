"""
Authentication Package

This package implements the OAuth 2.0 authorization code flow with PKCE in
front of application request handling, and resolves a session for each
request through token introspection.

Modules:
- middleware: Path dispatch for flow init, callback, logout and passthrough
- client: Token exchange, introspection and revocation calls to the provider
- assertion: RS256 client assertion signing for introspection
- session: Session construction and the request-scoped AuthContext
- gate: ``require_session`` dependency for protected routes
- utils: Random string generation and PKCE challenge derivation

The authentication flow:
1. Client visits {auth_base_url}; state and code_verifier cookies are set
2. User authenticates with the identity provider
3. Provider redirects to {auth_base_url}/callback with code and state
4. Middleware validates state, exchanges the code, sets the access_token cookie
5. Later requests are introspected and carry a Session for the route handlers
"""

from .gate import require_session
from .middleware import AuthFlowMiddleware, create_auth_middleware
from .session import AuthContext, get_auth_context, get_session

__all__ = [
    "AuthContext",
    "AuthFlowMiddleware",
    "create_auth_middleware",
    "get_auth_context",
    "get_session",
    "require_session",
]
