"""
Shared fixtures for the authentication tests.

Provides a throwaway RSA key pair for client assertions, a ready AuthConfig,
and ``provider``: a patched ``httpx.AsyncClient`` that answers provider
endpoints from canned ``httpx.Response`` objects.
"""

from typing import Dict, List, Union
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from pkce_auth.config import AuthConfig, JWTConfig


OAUTH_URL = "http://localhost:3304"
CLIENT_ID = "client-id"
TEST_KID = "key-id"


def generate_test_keys():
    """Generate RSA key pair for testing"""
    private_key = rsa.generate_private_key(
        public_exponent=65537,
        key_size=2048,
        backend=default_backend()
    )
    public_key = private_key.public_key()

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption()
    )

    public_pem = public_key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo
    )

    return private_pem.decode(), public_pem.decode()


# Generate test keys once for reuse
TEST_PRIVATE_KEY, TEST_PUBLIC_KEY = generate_test_keys()


class FakeProvider:
    """Stand-in for the identity provider behind a mocked AsyncClient."""

    def __init__(self):
        self.responses: Dict[str, Union[httpx.Response, Exception]] = {}
        self.client = AsyncMock()
        self.client.__aenter__.return_value = self.client
        self.client.__aexit__.return_value = False
        self.client.post.side_effect = self._post

    def respond(self, endpoint: str, result: Union[httpx.Response, Exception]) -> None:
        """Answer POSTs to ``/oauth/v2/<endpoint>`` with ``result``."""
        self.responses[f"/oauth/v2/{endpoint}"] = result

    def calls(self, endpoint: str) -> List:
        return [
            call for call in self.client.post.call_args_list
            if call.args[0].endswith(f"/oauth/v2/{endpoint}")
        ]

    async def _post(self, url, **kwargs):
        for suffix, result in self.responses.items():
            if url.endswith(suffix):
                if isinstance(result, Exception):
                    raise result
                return result
        raise AssertionError(f"Unexpected provider call: {url}")


@pytest.fixture
def auth_config() -> AuthConfig:
    """Middleware configuration pointing at the fake provider"""
    return AuthConfig(
        oauth_url=OAUTH_URL,
        client_id=CLIENT_ID,
        error_redirect_url="/login-error",
        jwt_config=JWTConfig(
            key_id=TEST_KID,
            key=TEST_PRIVATE_KEY,
            app_id="app-id",
            client_id=CLIENT_ID,
        ),
    )


@pytest.fixture
def provider():
    """Patch httpx.AsyncClient so provider calls hit a FakeProvider"""
    fake = FakeProvider()
    with patch("pkce_auth.auth.client.httpx.AsyncClient", return_value=fake.client):
        yield fake


@pytest.fixture
def public_key() -> str:
    """PEM public key matching the assertion signing key"""
    return TEST_PUBLIC_KEY
