"""Error handling for ChatRelay.

Typed domain exceptions raised by the service layer and mapped to HTTP
status codes by the API:
- AuthenticationError: 401
- ValidationError / MissingUserIdError: 400
- StorageUnavailableError: 500
- ProviderError and subclasses: 500
"""

from chatrelay.errors.domain import (
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

__all__ = [
    "DomainError",
    "AuthenticationError",
    "ValidationError",
    "MissingUserIdError",
    "StorageUnavailableError",
    "ProviderError",
    "ProviderConnectionError",
    "ProviderTimeoutError",
    "ProviderResponseError",
]
