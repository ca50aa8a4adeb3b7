"""HMAC-signed session tokens.

A token is base64url(JSON payload + "signature"), where the signature is
HMAC-SHA256 over the sorted-key JSON of the payload:
    {"sub": user id, "name": ..., "email": ..., "exp": unix seconds}

The signing secret comes from CHATRELAY_SESSION_SECRET. When unset, a
random per-process secret is generated, so sessions do not survive a
restart.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import secrets
import threading
import time

from chatrelay.services.account_service import SessionUser

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "chatrelay_session"
DEFAULT_SESSION_TTL_SECONDS = 30 * 24 * 60 * 60
_MIN_SECRET_LENGTH = 32

_generated_secret: str | None = None
_secret_lock = threading.Lock()


def validate_session_secret() -> None:
    """Fail fast at startup when a configured secret is too short.

    Raises:
        ValueError: If CHATRELAY_SESSION_SECRET is set but shorter than 32 chars.
    """
    secret = os.environ.get("CHATRELAY_SESSION_SECRET", "").strip()
    if secret and len(secret) < _MIN_SECRET_LENGTH:
        raise ValueError(
            f"CHATRELAY_SESSION_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )


def _get_secret() -> str:
    global _generated_secret
    secret = os.environ.get("CHATRELAY_SESSION_SECRET", "").strip()
    if secret:
        return secret
    with _secret_lock:
        if _generated_secret is None:
            logger.warning(
                "CHATRELAY_SESSION_SECRET is not set; using a per-process secret. "
                "Sessions will be invalidated on restart."
            )
            _generated_secret = secrets.token_urlsafe(48)
        return _generated_secret


def get_session_ttl() -> int:
    raw = os.environ.get("CHATRELAY_SESSION_TTL_SECONDS", "").strip()
    try:
        ttl = int(raw) if raw else DEFAULT_SESSION_TTL_SECONDS
    except ValueError:
        return DEFAULT_SESSION_TTL_SECONDS
    return ttl if ttl > 0 else DEFAULT_SESSION_TTL_SECONDS


def _sign(payload: dict) -> str:
    payload_json = json.dumps(payload, sort_keys=True)
    return hmac.new(
        _get_secret().encode(), payload_json.encode(), hashlib.sha256
    ).hexdigest()


def issue_token(user: SessionUser, ttl_seconds: int | None = None) -> str:
    """Create a signed session token for the user."""
    payload = {
        "sub": user.id,
        "name": user.name,
        "email": user.email,
        "exp": int(time.time()) + (ttl_seconds or get_session_ttl()),
    }
    payload["signature"] = _sign(payload)
    return base64.urlsafe_b64encode(json.dumps(payload).encode()).decode()


def read_token(token: str) -> dict | None:
    """Validate a token and return its payload (without signature).

    Returns None for malformed, forged or expired tokens. The payload's
    "sub" may be missing or empty; callers decide how to treat that.
    """
    try:
        decoded = json.loads(base64.urlsafe_b64decode(token.encode()))
    except (ValueError, TypeError):
        return None
    if not isinstance(decoded, dict):
        return None

    signature = decoded.pop("signature", None)
    if not isinstance(signature, str):
        return None
    if not hmac.compare_digest(signature, _sign(decoded)):
        return None

    exp = decoded.get("exp")
    if not isinstance(exp, (int, float)) or time.time() > exp:
        return None
    return decoded


def user_from_payload(payload: dict) -> SessionUser | None:
    """Build the session identity; None when the payload has no user id.

    Mirrors the user id fallback of the session layer: explicit id first,
    then email.
    """
    user_id = payload.get("sub") or payload.get("email")
    if not isinstance(user_id, str) or not user_id:
        return None
    return SessionUser(id=user_id, name=payload.get("name"), email=payload.get("email"))


def reset_generated_secret() -> None:
    """Forget the per-process secret. Used by tests."""
    global _generated_secret
    with _secret_lock:
        _generated_secret = None
