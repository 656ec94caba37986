"""
Authentication flow middleware.

This module implements the OAuth 2.0 authorization code flow with PKCE as a
Starlette middleware. Every request is dispatched on its path:

    {auth_base_url}            -> start the flow, redirect to the provider
    {auth_base_url}/callback   -> validate state, exchange code, set token cookie
    {auth_base_url}/logout     -> clear token cookie, revoke token
    anything else              -> introspect token cookie, attach session, continue

The resolved session is attached to ``request.state.auth`` as an
``AuthContext`` for downstream dependencies such as ``require_session``.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from pkce_auth.auth.client import ProviderClient
from pkce_auth.auth.exceptions import (
    AuthFlowError,
    InvalidStateError,
    ProviderError,
    SessionRequired,
    TokenExchangeError,
)
from pkce_auth.auth.gate import session_required_handler
from pkce_auth.auth.session import AuthContext, resolve_session
from pkce_auth.auth.utils import (
    CODE_VERIFIER_LENGTH,
    STATE_LENGTH,
    build_error_redirect,
    gen_random_string,
    generate_code_challenge,
    validate_state,
)
from pkce_auth.config import AuthConfig
from pkce_auth.models import ErrorResponse

logger = logging.getLogger(__name__)

STATE_COOKIE = "state"
CODE_VERIFIER_COOKIE = "code_verifier"
ACCESS_TOKEN_COOKIE = "access_token"


class AuthFlowMiddleware(BaseHTTPMiddleware):
    """Dispatches auth flow paths and resolves the session for all others."""

    def __init__(
        self,
        app: ASGIApp,
        config: AuthConfig,
        client: Optional[ProviderClient] = None,
    ):
        super().__init__(app)
        self.config = config
        self.client = client or ProviderClient(config)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        path = request.url.path

        if path == self.config.auth_base_url:
            return self.start_flow(request)

        try:
            if path == self.config.callback_path:
                return await self.handle_callback(request)

            if path == self.config.logout_path:
                return await self.handle_logout(request)

            context = AuthContext()
            clear_token = False
            access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)
            if access_token:
                claims = await self.client.introspect(access_token)
                if claims is not None:
                    context.session = resolve_session(claims, access_token)
                else:
                    logger.warning("Access token inactive, clearing cookie", extra={"path": path})
                    clear_token = True
        except ProviderError as e:
            logger.error(f"Identity provider unavailable: {e}", extra={"path": path})
            return JSONResponse(
                status_code=502,
                content=ErrorResponse(
                    error="provider_unavailable",
                    message="The identity provider could not be reached",
                ).model_dump(),
            )

        request.state.auth = context
        response = await call_next(request)

        if clear_token:
            self._delete_cookie(response, ACCESS_TOKEN_COOKIE)

        return response

    # =========================================================================
    # Flow Init
    # =========================================================================

    def start_flow(self, request: Request) -> Response:
        """Generate PKCE and state values and redirect to the authorize endpoint."""
        code_verifier = gen_random_string(CODE_VERIFIER_LENGTH)
        code_challenge = generate_code_challenge(code_verifier)
        state = gen_random_string(STATE_LENGTH)

        params = {
            "client_id": self.config.client_id,
            "response_type": "code",
            "redirect_uri": self._callback_url(request),
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "state": state,
            "scope": self.config.scope,
        }

        authorization_url = f"{self.config.authorize_endpoint}?{urlencode(params)}"

        response = RedirectResponse(url=authorization_url, status_code=302)
        self._set_cookie(response, STATE_COOKIE, state)
        self._set_cookie(response, CODE_VERIFIER_COOKIE, code_verifier)

        logger.info("Starting authorization flow", extra={"path": request.url.path})
        return response

    # =========================================================================
    # Callback
    # =========================================================================

    async def handle_callback(self, request: Request) -> Response:
        """Validate state, exchange the code and store the access token."""
        stored_state = request.cookies.get(STATE_COOKIE, "")
        code_verifier = request.cookies.get(CODE_VERIFIER_COOKIE, "")
        code = request.query_params.get("code", "")
        returned_state = request.query_params.get("state", "")

        try:
            if not validate_state(returned_state, stored_state):
                raise InvalidStateError()

            # Provider sent the user back with an error (e.g. access_denied)
            provider_error = request.query_params.get("error")
            if provider_error:
                raise TokenExchangeError(provider_error)

            token = await self.client.exchange_code(
                code=code,
                redirect_uri=self._callback_url(request),
                code_verifier=code_verifier,
            )
        except AuthFlowError as e:
            logger.warning(
                "Authorization callback rejected",
                extra={"error_code": e.code},
            )
            return RedirectResponse(
                url=build_error_redirect(self.config.error_redirect_url, e.code),
                status_code=302,
            )

        response = RedirectResponse(url=self.config.success_redirect_url, status_code=302)
        self._delete_cookie(response, STATE_COOKIE)
        self._delete_cookie(response, CODE_VERIFIER_COOKIE)
        self._set_cookie(response, ACCESS_TOKEN_COOKIE, token.access_token, expires=token.expires_in)

        logger.info("Authorization completed", extra={"expires_in": token.expires_in})
        return response

    # =========================================================================
    # Logout
    # =========================================================================

    async def handle_logout(self, request: Request) -> Response:
        """Clear the token cookie and revoke the token (best-effort)."""
        access_token = request.cookies.get(ACCESS_TOKEN_COOKIE)

        response = RedirectResponse(url=self.config.success_redirect_url, status_code=302)
        self._delete_cookie(response, ACCESS_TOKEN_COOKIE)

        if access_token:
            await self.client.revoke(access_token)

        logger.info("Logged out", extra={"had_token": bool(access_token)})
        return response

    # =========================================================================
    # Helpers
    # =========================================================================

    def _callback_url(self, request: Request) -> str:
        return str(request.url.replace(path=self.config.callback_path, query=""))

    def _set_cookie(
        self,
        response: Response,
        key: str,
        value: str,
        expires: Optional[int] = None,
    ) -> None:
        response.set_cookie(
            key,
            value,
            expires=expires,
            httponly=True,
            secure=self.config.cookie_secure,
        )

    def _delete_cookie(self, response: Response, key: str) -> None:
        response.delete_cookie(key, httponly=True, secure=self.config.cookie_secure)


def create_auth_middleware(
    app: FastAPI,
    config: AuthConfig,
    client: Optional[ProviderClient] = None,
) -> None:
    """
    Install the authentication flow on an application.

    Adds ``AuthFlowMiddleware`` and the handler that renders
    ``SessionRequired`` raised by ``require_session``.

    Args:
        app: FastAPI (or Starlette) application
        config: Middleware configuration
        client: Provider client override (defaults to one built from config)
    """
    app.add_middleware(AuthFlowMiddleware, config=config, client=client)
    app.add_exception_handler(SessionRequired, session_required_handler)
