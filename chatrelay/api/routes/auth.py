"""API routes for sign-in, sign-out and session lookup.

Endpoints:
    POST /auth/signin: Verify username/password, set the session cookie
    POST /auth/signout: Clear the session cookie
    GET /auth/session: Current session identity
"""

import logging
import os

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from chatrelay.api.deps import get_current_user
from chatrelay.api.middleware.auth import get_client_ip, is_rate_limited, record_auth_failure
from chatrelay.api.schemas import SessionResponse, SignInRequest, SuccessResponse
from chatrelay.db.connection import get_db
from chatrelay.errors import AuthenticationError
from chatrelay.services.account_service import AccountService, SessionUser
from chatrelay.services.session_tokens import SESSION_COOKIE_NAME, get_session_ttl, issue_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _cookie_secure() -> bool:
    return os.environ.get("CHATRELAY_COOKIE_SECURE", "").strip().lower() in {"1", "true", "yes", "on"}


@router.post("/signin", response_model=SessionResponse)
def sign_in(
    data: SignInRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    """Exchange username/password for a session cookie."""
    client_ip = get_client_ip(request)
    if is_rate_limited(client_ip):
        logger.warning("Sign-in rate limit exceeded for IP %s", client_ip)
        return JSONResponse(
            status_code=429,
            content={"error": "Too many failed sign-in attempts. Try again later."},
        )

    try:
        user = AccountService(db).authenticate(data.username, data.password)
    except AuthenticationError:
        record_auth_failure(client_ip)
        raise

    ttl = get_session_ttl()
    response.set_cookie(
        SESSION_COOKIE_NAME,
        issue_token(user, ttl_seconds=ttl),
        max_age=ttl,
        httponly=True,
        samesite="lax",
        secure=_cookie_secure(),
        path="/",
    )
    logger.info("User %s signed in", user.id)
    return SessionResponse(user=user.to_dict())


@router.post("/signout", response_model=SuccessResponse)
def sign_out(response: Response, user: SessionUser = Depends(get_current_user)):
    """Clear the session cookie.

    Tokens are stateless, so a copied token stays valid until it expires.
    """
    response.delete_cookie(SESSION_COOKIE_NAME, path="/")
    logger.info("User %s signed out", user.id)
    return SuccessResponse()


@router.get("/session", response_model=SessionResponse)
def get_session(user: SessionUser = Depends(get_current_user)):
    """Return the identity of the current session."""
    return SessionResponse(user=user.to_dict())
