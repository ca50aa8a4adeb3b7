"""Tests for the domain exception hierarchy."""

import pytest

from chatrelay.errors import (
    AuthenticationError,
    DomainError,
    MissingUserIdError,
    ProviderConnectionError,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
    StorageUnavailableError,
    ValidationError,
)


@pytest.mark.parametrize("exc,status", [
    (AuthenticationError("x"), 401),
    (ValidationError("x"), 400),
    (MissingUserIdError(), 400),
    (StorageUnavailableError("read"), 500),
    (ProviderError("openai", "x"), 500),
])
def test_status_codes(exc, status):
    assert isinstance(exc, DomainError)
    assert exc.status_code == status


def test_missing_user_id_message():
    assert MissingUserIdError().message == "User ID not found in session"


def test_storage_error_keeps_cause():
    cause = OSError("disk full")
    exc = StorageUnavailableError("message append", cause)

    assert exc.operation == "message append"
    assert exc.cause is cause
    assert "message append" in exc.message


def test_provider_errors_share_base():
    for cls in (ProviderConnectionError, ProviderTimeoutError, ProviderResponseError):
        assert issubclass(cls, ProviderError)


def test_provider_response_error_status():
    exc = ProviderResponseError("cohere", "HTTP 500: boom", status_code=500)

    assert exc.provider == "cohere"
    assert exc.upstream_status == 500
    assert exc.message == "cohere: HTTP 500: boom"
