"""Tests for HMAC-signed session tokens."""

import base64
import json

import pytest

from chatrelay.services.account_service import SessionUser
from chatrelay.services.session_tokens import (
    DEFAULT_SESSION_TTL_SECONDS,
    get_session_ttl,
    issue_token,
    read_token,
    user_from_payload,
    validate_session_secret,
)

USER = SessionUser(id="u-1", name="Una", email="una@example.com")


def test_issue_and_read():
    payload = read_token(issue_token(USER))

    assert payload["sub"] == "u-1"
    assert payload["name"] == "Una"
    assert payload["email"] == "una@example.com"
    assert "signature" not in payload


def test_tampered_payload_rejected():
    token = issue_token(USER)
    data = json.loads(base64.urlsafe_b64decode(token))
    data["sub"] = "someone-else"
    tampered = base64.urlsafe_b64encode(json.dumps(data).encode()).decode()

    assert read_token(tampered) is None


def test_token_signed_with_other_secret_rejected(monkeypatch):
    token = issue_token(USER)
    monkeypatch.setenv("CHATRELAY_SESSION_SECRET", "another-secret-that-is-long-enough-0000")

    assert read_token(token) is None


def test_expired_token_rejected():
    assert read_token(issue_token(USER, ttl_seconds=-1)) is None


@pytest.mark.parametrize("token", ["", "not-base64!!", base64.urlsafe_b64encode(b"[1]").decode()])
def test_garbage_rejected(token):
    assert read_token(token) is None


def test_generated_secret_when_unset(monkeypatch):
    monkeypatch.delenv("CHATRELAY_SESSION_SECRET", raising=False)

    assert read_token(issue_token(USER))["sub"] == "u-1"


class TestUserFromPayload:

    def test_sub(self):
        assert user_from_payload({"sub": "u-1", "name": "Una"}).id == "u-1"

    def test_email_fallback(self):
        assert user_from_payload({"sub": "", "email": "e@x"}).id == "e@x"

    def test_no_identifier(self):
        assert user_from_payload({"name": "Nobody"}) is None


class TestConfiguration:

    def test_short_secret_rejected(self, monkeypatch):
        monkeypatch.setenv("CHATRELAY_SESSION_SECRET", "short")
        with pytest.raises(ValueError, match="too short"):
            validate_session_secret()

    def test_unset_secret_allowed(self, monkeypatch):
        monkeypatch.delenv("CHATRELAY_SESSION_SECRET", raising=False)
        validate_session_secret()

    @pytest.mark.parametrize("raw,expected", [
        ("", DEFAULT_SESSION_TTL_SECONDS),
        ("3600", 3600),
        ("-5", DEFAULT_SESSION_TTL_SECONDS),
        ("abc", DEFAULT_SESSION_TTL_SECONDS),
    ])
    def test_session_ttl(self, monkeypatch, raw, expected):
        monkeypatch.setenv("CHATRELAY_SESSION_TTL_SECONDS", raw)
        assert get_session_ttl() == expected
