"""
Configuration module for the PKCE authentication middleware.

Two layers live here:

- ``AuthConfig`` / ``JWTConfig``: the immutable configuration object the
  middleware and provider client are constructed with. It is built once at
  startup and shared read-only by every request.
- ``Settings``: Pydantic Settings that load the same values from environment
  variables (or a ``.env`` file) for the bundled application entry point.
"""

import logging
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SCOPE = "openid profile email"


# =============================================================================
# Middleware Configuration
# =============================================================================

class JWTConfig(BaseModel):
    """Key material used to sign client assertions for token introspection."""

    model_config = ConfigDict(frozen=True)

    key_id: str = Field(..., min_length=1, description="Key ID placed in the JWT 'kid' header")
    key: str = Field(..., min_length=1, description="PEM encoded RSA private key")
    app_id: str = Field(..., description="Application ID registered with the provider")
    client_id: str = Field(..., min_length=1, description="Client ID used as assertion iss/sub")


class AuthConfig(BaseModel):
    """
    Immutable configuration for the authentication flow.

    ``auth_base_url`` is a path on this service (the flow lives at
    ``{auth_base_url}``, ``/callback`` and ``/logout`` below it) and
    ``oauth_url`` is the identity provider's base URL.
    """

    model_config = ConfigDict(frozen=True)

    auth_base_url: str = Field(default="/auth")
    oauth_url: str = Field(..., min_length=1)
    client_id: str = Field(..., min_length=1)
    jwt_config: JWTConfig
    scope: str = Field(default=DEFAULT_SCOPE)
    success_redirect_url: str = Field(default="/")
    error_redirect_url: str = Field(default="/")
    provider_timeout: float = Field(default=10.0, gt=0)
    cookie_secure: bool = Field(default=False)

    @field_validator("auth_base_url")
    @classmethod
    def validate_auth_base_url(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"auth_base_url must be an absolute path, got: {v}")
        return v.rstrip("/") or "/"

    @field_validator("oauth_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def callback_path(self) -> str:
        return f"{self.auth_base_url.rstrip('/')}/callback"

    @property
    def logout_path(self) -> str:
        return f"{self.auth_base_url.rstrip('/')}/logout"

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.oauth_url}/oauth/v2/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.oauth_url}/oauth/v2/token"

    @property
    def introspect_endpoint(self) -> str:
        return f"{self.oauth_url}/oauth/v2/introspect"

    @property
    def revoke_endpoint(self) -> str:
        return f"{self.oauth_url}/oauth/v2/revoke"


# =============================================================================
# Environment Settings
# =============================================================================

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Mirrors ``AuthConfig`` plus the server and logging options used by
    ``pkce_auth.main``.
    """

    # =========================================================================
    # Identity Provider
    # =========================================================================

    OAUTH_URL: str = Field(
        ...,
        description="Identity provider base URL (e.g., https://idp.example.com)",
        min_length=1,
    )

    OAUTH_CLIENT_ID: str = Field(
        ...,
        description="OAuth client ID registered with the provider",
        min_length=1,
    )

    OAUTH_SCOPE: str = Field(
        default=DEFAULT_SCOPE,
        description="Space separated scopes requested at authorization",
    )

    PROVIDER_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        description="Timeout for each token/introspection/revocation call",
        ge=1,
        le=60,
    )

    # =========================================================================
    # Flow Paths and Redirects
    # =========================================================================

    AUTH_BASE_URL: str = Field(
        default="/auth",
        description="Path the authentication flow is mounted at",
    )

    SUCCESS_REDIRECT_URL: str = Field(
        default="/",
        description="Where the user lands after login or logout",
    )

    ERROR_REDIRECT_URL: str = Field(
        default="/",
        description="Where the user lands when the flow fails (with ?error=...)",
    )

    COOKIE_SECURE: bool = Field(
        default=False,
        description="Mark auth cookies as Secure (enable behind HTTPS)",
    )

    # =========================================================================
    # Client Assertion Signing
    # =========================================================================

    JWT_KEY_ID: str = Field(..., description="Key ID of the signing key", min_length=1)

    JWT_PRIVATE_KEY: str = Field(
        ...,
        description="PEM private key; literal \\n sequences are expanded",
        min_length=1,
    )

    JWT_APP_ID: str = Field(default="", description="Provider application ID")

    JWT_CLIENT_ID: Optional[str] = Field(
        None,
        description="Client ID for assertions (defaults to OAUTH_CLIENT_ID)",
    )

    # =========================================================================
    # Server
    # =========================================================================

    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8080, ge=1, le=65535)
    LOG_LEVEL: str = Field(default="INFO")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("AUTH_BASE_URL")
    @classmethod
    def validate_auth_base_url(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"AUTH_BASE_URL must start with '/', got: {v}")
        return v.rstrip("/") or "/"

    @field_validator("OAUTH_URL")
    @classmethod
    def validate_oauth_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(
                f"OAUTH_URL must be an http(s) URL, got: {v}"
            )
        return v.rstrip("/")

    @field_validator("JWT_PRIVATE_KEY")
    @classmethod
    def expand_key_newlines(cls, v: str) -> str:
        # Keys pasted into a single-line env var carry escaped newlines
        return v.replace("\\n", "\n")

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown LOG_LEVEL: {v}")
        return level

    # =========================================================================
    # Conversion
    # =========================================================================

    def to_auth_config(self) -> AuthConfig:
        """Build the immutable middleware configuration from these settings."""
        return AuthConfig(
            auth_base_url=self.AUTH_BASE_URL,
            oauth_url=self.OAUTH_URL,
            client_id=self.OAUTH_CLIENT_ID,
            scope=self.OAUTH_SCOPE,
            success_redirect_url=self.SUCCESS_REDIRECT_URL,
            error_redirect_url=self.ERROR_REDIRECT_URL,
            provider_timeout=self.PROVIDER_TIMEOUT_SECONDS,
            cookie_secure=self.COOKIE_SECURE,
            jwt_config=JWTConfig(
                key_id=self.JWT_KEY_ID,
                key=self.JWT_PRIVATE_KEY,
                app_id=self.JWT_APP_ID,
                client_id=self.JWT_CLIENT_ID or self.OAUTH_CLIENT_ID,
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Get or create a singleton Settings instance.

    Returns:
        Settings instance with all configuration loaded and validated.

    Raises:
        ValidationError: If required environment variables are missing
                        or invalid.
    """
    return Settings()
