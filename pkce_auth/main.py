"""
FastAPI Application Factory
===========================

Hosts the PKCE authentication middleware in a small FastAPI service.

Routes:
    - /auth, /auth/callback, /auth/logout : handled by AuthFlowMiddleware
    - /            : public page, shows the session user when logged in
    - /protected   : requires a session (401 without one)
    - /health      : health check

Environment Variables Required:
    - OAUTH_URL: Identity provider base URL
    - OAUTH_CLIENT_ID: OAuth client ID
    - JWT_KEY_ID / JWT_PRIVATE_KEY: client assertion signing key
    - LOG_LEVEL: Logging level (default: INFO)

Running the Service:
    Development:
        uvicorn pkce_auth.main:create_app --factory --reload --port 8080

    Production:
        uvicorn pkce_auth.main:create_app --factory --host 0.0.0.0 --port 8080 --workers 4
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from pkce_auth.auth import create_auth_middleware, get_session, require_session
from pkce_auth.auth.client import ProviderClient
from pkce_auth.config import AuthConfig, get_settings
from pkce_auth.models import Session

logger = logging.getLogger("pkce_auth.main")


# Configure structured JSON logging
def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s", "module": "%(module)s", "function": "%(funcName)s"}',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def create_app(
    config: Optional[AuthConfig] = None,
    client: Optional[ProviderClient] = None,
) -> FastAPI:
    """
    Application factory function.

    Args:
        config: Middleware configuration. Loaded from the environment when omitted.
        client: Provider client override, mainly for tests

    Returns:
        FastAPI: Configured application instance
    """
    if config is None:
        settings = get_settings()
        setup_logging(settings.LOG_LEVEL)
        config = settings.to_auth_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            "Starting authentication service",
            extra={
                "oauth_url": config.oauth_url,
                "auth_base_url": config.auth_base_url,
            }
        )
        yield
        logger.info("Authentication service shutdown complete")

    app = FastAPI(
        title="PKCE Auth Service",
        description="OAuth2 authorization code flow with PKCE and token introspection",
        version="1.0.0",
        lifespan=lifespan,
    )

    create_auth_middleware(app, config, client=client)

    @app.get("/health", tags=["System"])
    async def health_check() -> Dict[str, str]:
        return {"status": "ok", "service": "pkce-auth"}

    @app.get("/", tags=["System"])
    async def root(session: Optional[Session] = Depends(get_session)) -> Dict[str, Any]:
        if session is None:
            return {"authenticated": False, "login": config.auth_base_url}
        return {
            "authenticated": True,
            "user": session.user.model_dump(),
            "logout": config.logout_path,
        }

    @app.get("/protected", tags=["System"])
    async def protected(session: Session = Depends(require_session())) -> Dict[str, Any]:
        return {"user": session.user.model_dump(), "expires_at": session.expires_at}

    # Global exception handler
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """
        Log unhandled errors and return a standardized 500 response.
        """
        logger.error(
            f"Unhandled exception: {str(exc)}",
            extra={
                "path": request.url.path,
                "method": request.method,
                "exception_type": type(exc).__name__
            },
            exc_info=True
        )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "An unexpected error occurred",
            }
        )

    return app


if __name__ == "__main__":
    settings = get_settings()

    uvicorn.run(
        "pkce_auth.main:create_app",
        factory=True,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower(),
    )
