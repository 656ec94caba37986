"""
Identity provider client.

Wraps the three back-channel calls the flow makes against the provider:

- Token exchange (authorization code + PKCE verifier -> access token)
- Token introspection (access token -> claims, authenticated by client assertion)
- Token revocation (best-effort, at logout)

All calls are form-encoded POSTs made with ``httpx.AsyncClient`` and bounded
by ``AuthConfig.provider_timeout``.
"""

import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from pkce_auth.auth.assertion import CLIENT_ASSERTION_TYPE, create_client_assertion
from pkce_auth.auth.exceptions import ProviderError, TokenExchangeError
from pkce_auth.config import AuthConfig
from pkce_auth.models import IntrospectionClaims, TokenResponse

logger = logging.getLogger(__name__)

FORM_HEADERS = {"Content-Type": "application/x-www-form-urlencoded"}


class ProviderClient:
    """Back-channel client for the configured identity provider."""

    def __init__(self, config: AuthConfig):
        self.config = config

    async def _post_form(self, url: str, data: Dict[str, str]) -> httpx.Response:
        try:
            async with httpx.AsyncClient() as client:
                return await client.post(
                    url,
                    data=data,
                    headers=FORM_HEADERS,
                    timeout=self.config.provider_timeout,
                )
        except httpx.HTTPError as e:
            logger.error(
                f"Provider request failed: {type(e).__name__}",
                extra={"url": url},
            )
            raise ProviderError(f"Unable to reach identity provider: {e}") from e

    @staticmethod
    def _json_body(response: httpx.Response, url: str) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(
                f"Non-JSON response from {url} (status {response.status_code})"
            ) from e
        if not isinstance(body, dict):
            raise ProviderError(f"Unexpected response shape from {url}")
        return body

    # =========================================================================
    # Token Exchange
    # =========================================================================

    async def exchange_code(self, code: str, redirect_uri: str, code_verifier: str) -> TokenResponse:
        """
        Exchange authorization code for an access token.

        Args:
            code: Authorization code from callback
            redirect_uri: Redirect URI (must match the one used at init)
            code_verifier: PKCE code verifier stored at init

        Returns:
            Token response containing access_token and expires_in

        Raises:
            TokenExchangeError: If the provider returned an OAuth2 error
            ProviderError: If the provider is unreachable or the response is unusable
        """
        url = self.config.token_endpoint
        payload = {
            "client_id": self.config.client_id,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": redirect_uri,
            "code_verifier": code_verifier,
        }

        response = await self._post_form(url, payload)
        body = self._json_body(response, url)

        try:
            token_response = TokenResponse.model_validate(body)
        except ValidationError as e:
            raise ProviderError(f"Malformed token response: {e}") from e

        if token_response.error:
            raise TokenExchangeError(
                token_response.error,
                token_response.error_description or token_response.error,
            )

        if not token_response.access_token:
            raise ProviderError("Token response missing access_token")

        return token_response

    # =========================================================================
    # Introspection
    # =========================================================================

    async def introspect(self, access_token: str) -> Optional[IntrospectionClaims]:
        """
        Validate an access token and fetch its claims.

        Returns:
            Claims when the provider reports the token active, None otherwise.
            An HTTP error status from the provider counts as inactive.

        Raises:
            ProviderError: If the provider is unreachable or the body is not JSON
        """
        url = self.config.introspect_endpoint
        payload = {
            "client_assertion_type": CLIENT_ASSERTION_TYPE,
            "client_assertion": create_client_assertion(self.config),
            "token": access_token,
        }

        response = await self._post_form(url, payload)

        if not response.is_success:
            logger.warning(
                "Introspection rejected by provider",
                extra={"status_code": response.status_code},
            )
            return None

        body = self._json_body(response, url)

        try:
            claims = IntrospectionClaims.from_response(body)
        except ValidationError as e:
            raise ProviderError(f"Malformed introspection response: {e}") from e

        if not claims.active:
            return None

        return claims

    # =========================================================================
    # Revocation
    # =========================================================================

    async def revoke(self, access_token: str) -> bool:
        """
        Revoke an access token. Failures are logged and reported as False.
        """
        url = self.config.revoke_endpoint
        payload = {
            "client_id": self.config.client_id,
            "token": access_token,
        }

        try:
            response = await self._post_form(url, payload)
        except ProviderError as e:
            logger.warning(f"Token revocation failed: {e}")
            return False

        if not response.is_success:
            logger.warning(
                "Token revocation rejected by provider",
                extra={"status_code": response.status_code},
            )
            return False

        return True
