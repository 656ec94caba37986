"""
Authentication utilities for the PKCE flow.

This module handles:
- Generating unreserved-character random strings (state, code verifier)
- Deriving S256 code challenges from verifiers
- Comparing callback state against the stored value
- Building the error redirect location
"""

import base64
import hashlib
import secrets
import string
from urllib.parse import urlencode


# RFC 3986 unreserved characters
UNRESERVED_CHARACTERS = string.ascii_uppercase + string.ascii_lowercase + string.digits + "-._~"

STATE_LENGTH = 32
CODE_VERIFIER_LENGTH = 128


# =============================================================================
# PKCE Helper Functions
# =============================================================================

def gen_random_string(length: int) -> str:
    """
    Generate a cryptographically random string of unreserved URI characters.

    Each character is drawn independently and uniformly from
    ``A-Z a-z 0-9 - . _ ~`` using the ``secrets`` module.

    Args:
        length: Number of characters to generate

    Returns:
        Random string of exactly ``length`` characters

    Raises:
        ValueError: If length is negative
    """
    if length < 0:
        raise ValueError(f"length must be non-negative, got: {length}")
    return "".join(secrets.choice(UNRESERVED_CHARACTERS) for _ in range(length))


def generate_code_challenge(verifier: str) -> str:
    """
    Generate code challenge from verifier using S256 method.

    Args:
        verifier: Code verifier string

    Returns:
        Base64-URL-encoded SHA256 hash of verifier, without padding
    """
    digest = hashlib.sha256(verifier.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("utf-8").rstrip("=")


# =============================================================================
# Callback Validation Helpers
# =============================================================================

def validate_state(received_state: str, expected_state: str) -> bool:
    """
    Validate OAuth state parameter.

    An empty value on either side never validates.

    Args:
        received_state: State from callback query
        expected_state: State from the cookie set at flow init

    Returns:
        True if states match
    """
    if not received_state or not expected_state:
        return False
    return secrets.compare_digest(received_state.encode("utf-8"), expected_state.encode("utf-8"))


def build_error_redirect(base_url: str, error_code: str) -> str:
    """Append ``error=<code>`` to ``base_url``, keeping any existing query."""
    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}{urlencode({'error': error_code})}"
