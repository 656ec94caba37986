"""
Client assertion signing.

The middleware authenticates itself to the provider's introspection endpoint
with a short-lived RS256 JWT (``private_key_jwt`` client authentication).
A fresh assertion is minted for every introspection call.
"""

import logging
import time
from typing import Optional

import jwt

from pkce_auth.auth.exceptions import AssertionSigningError
from pkce_auth.config import AuthConfig

logger = logging.getLogger(__name__)

CLIENT_ASSERTION_TYPE = "urn:ietf:params:oauth:client-assertion-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 60 * 60


def create_client_assertion(config: AuthConfig, now: Optional[int] = None) -> str:
    """
    Create a signed client assertion JWT.

    Args:
        config: Middleware configuration holding the signing key
        now: Issue time in epoch seconds (defaults to the current time)

    Returns:
        Encoded JWT string

    Raises:
        AssertionSigningError: If the configured key cannot sign with RS256
    """
    jwt_config = config.jwt_config
    issued_at = int(time.time()) if now is None else now

    payload = {
        "iss": jwt_config.client_id,
        "sub": jwt_config.client_id,
        "aud": config.oauth_url,
        "iat": issued_at,
        "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
    }

    try:
        return jwt.encode(
            payload,
            jwt_config.key,
            algorithm="RS256",
            headers={"kid": jwt_config.key_id},
        )
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        logger.error(
            "Failed to sign client assertion",
            extra={"key_id": jwt_config.key_id, "exception_type": type(e).__name__},
        )
        raise AssertionSigningError(f"Failed to sign client assertion: {e}") from e
