"""Exceptions raised by the authentication flow."""

from typing import Optional

from fastapi import HTTPException, status


class AuthFlowError(Exception):
    """A flow failure the middleware recovers from with an error redirect."""

    def __init__(self, code: str, message: Optional[str] = None):
        self.code = code
        super().__init__(message or code)


class InvalidStateError(AuthFlowError):
    """Callback state does not match the state stored at flow init."""

    def __init__(self, message: str = "State parameter mismatch"):
        super().__init__("invalid_state", message)


class TokenExchangeError(AuthFlowError):
    """The provider answered the code exchange with an OAuth2 error."""


class ProviderError(Exception):
    """The provider could not be reached or sent an unusable response."""


class AssertionSigningError(Exception):
    """The configured key could not sign a client assertion."""


class SessionRequired(HTTPException):
    """
    Raised by the session gate when a request carries no session.

    With ``redirect_to`` set it is rendered as a 302 to that location,
    otherwise as a plain 401.
    """

    def __init__(self, redirect_to: Optional[str] = None):
        self.redirect_to = redirect_to
        if redirect_to:
            super().__init__(
                status_code=status.HTTP_302_FOUND,
                detail="Redirecting to login",
                headers={"Location": redirect_to},
            )
        else:
            super().__init__(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Unauthorized",
            )
