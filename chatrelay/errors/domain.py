"""Typed domain exceptions for API error mapping.

Services raise these; the FastAPI app maps each type to a status code
in one place (see chatrelay.api.main).

Usage:
    # In service layer
    raise ValidationError("Provider, model, and API key are required")

    # Mapped by the app's exception handler to
    # 400 {"error": "Provider, model, and API key are required"}
"""


class DomainError(Exception):
    """Base exception for all domain errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class AuthenticationError(DomainError):
    """Missing, expired or forged session, or bad sign-in. Maps to HTTP 401."""

    status_code = 401


class ValidationError(DomainError):
    """Malformed request fields. Maps to HTTP 400."""

    status_code = 400


class MissingUserIdError(ValidationError):
    """Session carries no usable user identifier. Maps to HTTP 400."""

    def __init__(self) -> None:
        super().__init__("User ID not found in session")


class StorageUnavailableError(DomainError):
    """Database read/write failed. Maps to HTTP 500, never retried."""

    def __init__(self, operation: str, cause: Exception | None = None) -> None:
        super().__init__(f"Storage unavailable during {operation}")
        self.operation = operation
        self.cause = cause


class ProviderError(DomainError):
    """Base for failures talking to an LLM provider. Maps to HTTP 500."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderConnectionError(ProviderError):
    """Provider endpoint could not be reached."""


class ProviderTimeoutError(ProviderError):
    """Provider did not answer within the configured timeout."""


class ProviderResponseError(ProviderError):
    """Provider answered with an error status or an unparseable body."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        super().__init__(provider, message)
        self.upstream_status = status_code
