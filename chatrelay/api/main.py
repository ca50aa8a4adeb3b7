"""FastAPI application for the ChatRelay API.

Provides the main application instance with routers, the session gate
middleware, and exception handlers that turn domain errors into JSON
error bodies.
"""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

# Configure logging to stdout for uvicorn to capture
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logging.getLogger("chatrelay").setLevel(logging.INFO)
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatrelay import __version__
from chatrelay.api.middleware.auth import require_session
from chatrelay.api.routes import auth, chat, providers, settings
from chatrelay.errors import (
    AuthenticationError,
    DomainError,
    ProviderError,
    StorageUnavailableError,
    ValidationError,
)
from chatrelay.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Route-specific bodies for 500 responses.
_FAILURE_MESSAGES = {
    f"{API_PREFIX}/chat": "Failed to process chat request",
    f"{API_PREFIX}/messages": "Failed to fetch messages",
    f"{API_PREFIX}/settings/api-key": "Failed to access API key settings",
}
_DEFAULT_FAILURE_MESSAGE = "Internal server error"


def _parse_allowed_origins() -> list[str]:
    """Parse comma-separated CORS allowlist from ALLOWED_ORIGINS env var."""
    raw = os.environ.get("ALLOWED_ORIGINS", "").strip()
    if not raw:
        return []
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def _failure_message(request: Request) -> str:
    return _FAILURE_MESSAGES.get(request.url.path.rstrip("/"), _DEFAULT_FAILURE_MESSAGE)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, validate secrets and seed the demo account."""
    from chatrelay.db.connection import get_db_context, init_db
    from chatrelay.services.account_service import AccountService, should_seed_demo_account
    from chatrelay.services.session_tokens import validate_session_secret

    validate_session_secret()
    init_db()
    if should_seed_demo_account():
        with get_db_context() as db:
            AccountService(db).ensure_demo_account()

    yield

    from chatrelay.db.connection import close_db
    close_db()


app = FastAPI(
    title="ChatRelay API",
    description="Session-gated chat backend relaying messages to LLM providers",
    version=__version__,
    lifespan=lifespan,
)

# Every /api/ route except sign-in needs a session.
app.middleware("http")(require_session)

# CORS allowlist is env-driven. If unset, CORS is disabled (same-origin only).
allowed_origins = _parse_allowed_origins()
if allowed_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )


@app.exception_handler(AuthenticationError)
async def authentication_error_handler(
    request: Request, exc: AuthenticationError
) -> JSONResponse:
    return JSONResponse(status_code=401, content={"error": exc.message})


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed JSON bodies get the API's 400 shape instead of FastAPI's 422."""
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """Upstream LLM failure. The user's message is already stored."""
    detail = sanitize_error_message(exc.message, max_length=500)
    logger.error("Provider failure on %s: %s", request.url.path, detail)
    return JSONResponse(
        status_code=500,
        content={"error": _failure_message(request), "detail": detail},
    )


@app.exception_handler(StorageUnavailableError)
async def storage_error_handler(
    request: Request, exc: StorageUnavailableError
) -> JSONResponse:
    logger.error("Storage failure on %s: %s (%s)", request.url.path, exc.message, exc.cause)
    return JSONResponse(status_code=500, content={"error": _failure_message(request)})


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    logger.error("Unhandled domain error on %s: %s", request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": _failure_message(request)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(status_code=500, content={"error": _failure_message(request)})


app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(chat.router, prefix=API_PREFIX)
app.include_router(settings.router, prefix=API_PREFIX)
app.include_router(providers.router, prefix=API_PREFIX)


@app.get("/health")
def health() -> dict:
    """Liveness check."""
    return {"status": "ok", "version": __version__}


@app.get("/")
def root() -> dict:
    """API root with links to docs."""
    return {
        "name": "ChatRelay API",
        "version": __version__,
        "docs": "/docs",
    }
