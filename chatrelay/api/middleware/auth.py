"""Session gate middleware and sign-in rate limiting.

Every /api/ path except sign-in requires a valid session, read from the
chatrelay_session cookie or an "Authorization: Bearer <token>" header.
Requests without one get 401 before any route code runs, so they cannot
mutate data. The validated payload is stored on request.state.session
for the get_current_user dependency.
"""

from __future__ import annotations

import logging
import os
import threading
import time

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from chatrelay.services.session_tokens import SESSION_COOKIE_NAME, read_token

logger = logging.getLogger(__name__)

_PUBLIC_PATHS = frozenset({
    "/api/v1/auth/signin",
})
_PUBLIC_PATH_PREFIXES = (
    "/health",
    "/docs",
    "/redoc",
    "/openapi.json",
)

# --- Rate limiting for sign-in failures ---
_AUTH_FAIL_MAX = 10  # Max failures per IP in the time window
_AUTH_FAIL_WINDOW_SECONDS = 300
_auth_failures: dict[str, list[float]] = {}
_auth_lock = threading.Lock()  # Protects _auth_failures


def _trust_proxy() -> bool:
    return os.environ.get("CHATRELAY_TRUST_PROXY", "").strip().lower() in ("1", "true")


def get_client_ip(request: Request) -> str:
    """Extract client IP from request.

    X-Forwarded-For is only honoured when CHATRELAY_TRUST_PROXY is enabled,
    otherwise clients could spoof it to dodge the rate limiter.
    """
    if _trust_proxy():
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def is_rate_limited(client_ip: str) -> bool:
    """True when the IP exceeded the sign-in failure budget for the window."""
    with _auth_lock:
        now = time.monotonic()
        timestamps = [
            t for t in _auth_failures.get(client_ip, [])
            if now - t < _AUTH_FAIL_WINDOW_SECONDS
        ]
        _auth_failures[client_ip] = timestamps
        return len(timestamps) >= _AUTH_FAIL_MAX


def record_auth_failure(client_ip: str) -> None:
    with _auth_lock:
        _auth_failures.setdefault(client_ip, []).append(time.monotonic())


def reset_rate_limiter() -> None:
    """Reset the rate limiter state. Used by tests."""
    with _auth_lock:
        _auth_failures.clear()


def should_authenticate(path: str) -> bool:
    """Return True when this path requires a session."""
    if path in _PUBLIC_PATHS or path.startswith(_PUBLIC_PATH_PREFIXES):
        return False
    return path.startswith("/api/")


def extract_token(request: Request) -> str | None:
    """Session token from the cookie, else from a Bearer header."""
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme.lower() == "bearer" and value.strip():
        return value.strip()
    return None


async def require_session(request: Request, call_next) -> Response:
    """FastAPI middleware entrypoint for the session gate."""
    if request.method.upper() == "OPTIONS" or not should_authenticate(request.url.path):
        return await call_next(request)

    token = extract_token(request)
    payload = read_token(token) if token else None
    if payload is None:
        logger.debug("Rejected unauthenticated %s %s", request.method, request.url.path)
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    request.state.session = payload
    return await call_next(request)
