"""
Data Models Module

Pydantic models for the provider responses consumed by the authentication
flow and for the session attached to each request.

- Provider models (token endpoint and introspection endpoint responses)
- Session models (the user projection and the per-request session)
- Error models (the body returned when the provider is unreachable)
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


# ============================================================================
# Provider Response Models
# ============================================================================

class TokenResponse(BaseModel):
    """Response of the provider's token endpoint (success or error shape)."""

    model_config = ConfigDict(extra="allow")

    access_token: Optional[str] = Field(None, description="Opaque bearer token")
    token_type: Optional[str] = Field(None, description="Token type, usually Bearer")
    expires_in: Optional[int] = Field(None, description="Token lifetime in seconds")
    id_token: Optional[str] = Field(None, description="OIDC ID token if requested")
    refresh_token: Optional[str] = Field(None, description="Refresh token (unused)")
    scope: Optional[str] = Field(None, description="Granted scopes")
    error: Optional[str] = Field(None, description="OAuth2 error code")
    error_description: Optional[str] = Field(None, description="Human-readable error")


class IntrospectionClaims(BaseModel):
    """
    Response of the provider's introspection endpoint (RFC 7662).

    Only ``active``, ``sub`` and ``exp`` are typed. Profile claims are taken
    as the provider sends them, and the untouched response body is kept in
    ``raw`` for the session's ``info``.
    """

    model_config = ConfigDict(extra="allow")

    active: bool = Field(default=False, description="Whether the token is valid")
    sub: Optional[str] = None
    exp: Optional[int] = None
    iat: Any = None
    scope: Any = None
    client_id: Any = None
    username: Any = None
    name: Any = None
    family_name: Any = None
    given_name: Any = None
    preferred_username: Any = None
    email: Any = None
    email_verified: Any = None
    updated_at: Any = None

    _raw: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @classmethod
    def from_response(cls, body: Dict[str, Any]) -> "IntrospectionClaims":
        claims = cls.model_validate(body)
        claims._raw = dict(body)
        return claims

    @property
    def raw(self) -> Dict[str, Any]:
        return self._raw or self.model_dump(exclude_unset=True)


# ============================================================================
# Session Models
# ============================================================================

class SessionUser(BaseModel):
    """User profile projected from introspection claims. Absent claims stay None."""

    id: Optional[str] = Field(None, description="Subject identifier (claims.sub)")
    username: Any = None
    name: Any = None
    family_name: Any = None
    given_name: Any = None
    preferred_username: Any = None
    email: Any = None
    email_verified: Any = None
    updated_at: Any = None


class Session(BaseModel):
    """Authenticated session resolved for a single request."""

    user: SessionUser
    expires_at: Optional[int] = Field(None, description="Epoch seconds from claims.exp")
    access_token: str
    info: Dict[str, Any] = Field(default_factory=dict, description="Raw introspection claims")


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standardized error response model."""

    error: str = Field(..., description="Error type or code")
    message: str = Field(..., description="Human-readable error message")
