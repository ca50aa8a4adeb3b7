"""Abstract base class and registry for LLM provider adapters.

Each implemented provider translates the unified role-tagged message
sequence into its own wire shape, calls the vendor API, and pulls a
single reply string out of the response.

Example implementation:
    @register_adapter
    class AcmeAdapter(ProviderAdapter):
        provider_id = "acme"

        def format_history(self, messages, model):
            return {"model": model, "turns": [m.content for m in messages]}

        def endpoint_url(self):
            return "https://api.acme.test/v1/generate"

        def extract_reply(self, data):
            return data.get("output")
"""

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from chatrelay.errors import (
    ProviderConnectionError,
    ProviderError,
    ProviderResponseError,
    ProviderTimeoutError,
)
from chatrelay.utils.redaction import sanitize_error_message

logger = logging.getLogger(__name__)

DEFAULT_PROVIDER_TIMEOUT_SECONDS = 60.0

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class RoleMessage:
    """One entry of the provider-neutral conversation context."""

    role: Role
    content: str


def get_provider_timeout() -> float:
    """Read CHATRELAY_PROVIDER_TIMEOUT (seconds), falling back to 60."""
    raw = os.environ.get("CHATRELAY_PROVIDER_TIMEOUT", "").strip()
    if not raw:
        return DEFAULT_PROVIDER_TIMEOUT_SECONDS
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid CHATRELAY_PROVIDER_TIMEOUT %r, using default", raw)
        return DEFAULT_PROVIDER_TIMEOUT_SECONDS
    return value if value > 0 else DEFAULT_PROVIDER_TIMEOUT_SECONDS


class ProviderAdapter(ABC):
    """Base class for provider adapters.

    Subclasses set provider_id and implement format_history,
    endpoint_url and extract_reply. generate() runs the three steps.

    Args:
        timeout: Per-call timeout in seconds (defaults to configuration).
        transport: Optional httpx transport, used by tests.
    """

    provider_id: str = ""

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout if timeout is not None else get_provider_timeout()
        self._transport = transport

    @abstractmethod
    def format_history(self, messages: list[RoleMessage], model: str) -> dict[str, Any]:
        """Build the request body from the unified message sequence."""
        ...

    @abstractmethod
    def endpoint_url(self) -> str:
        """Return the absolute URL of the chat endpoint."""
        ...

    @abstractmethod
    def extract_reply(self, data: dict[str, Any]) -> str | None:
        """Pull the reply text out of a decoded response body."""
        ...

    def build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def invoke(self, body: dict[str, Any], api_key: str) -> dict[str, Any]:
        """POST the body to the provider and return the decoded JSON.

        Raises:
            ProviderConnectionError: Endpoint unreachable.
            ProviderTimeoutError: No answer within the timeout.
            ProviderResponseError: Error status or non-JSON body.
        """
        url = self.endpoint_url()
        logger.info(
            "Dispatching to %s (model=%s, messages=%s)",
            self.provider_id, body.get("model"), _message_count(body),
        )
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(url, json=body, headers=self.build_headers(api_key))
                response.raise_for_status()
                data = response.json()
        except httpx.ConnectError as e:
            raise ProviderConnectionError(
                self.provider_id, f"Connection to {url} failed"
            ) from e
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError(
                self.provider_id, f"Request timed out after {self._timeout:g}s"
            ) from e
        except httpx.HTTPStatusError as e:
            detail = sanitize_error_message(e.response.text, max_length=300)
            raise ProviderResponseError(
                self.provider_id,
                f"HTTP {e.response.status_code}: {detail}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise ProviderError(
                self.provider_id, f"Request failed: {sanitize_error_message(str(e))}"
            ) from e
        except ValueError as e:
            raise ProviderResponseError(self.provider_id, "Response body is not JSON") from e

        if not isinstance(data, dict):
            raise ProviderResponseError(self.provider_id, "Response body is not a JSON object")
        return data

    async def generate(self, messages: list[RoleMessage], model: str, api_key: str) -> str | None:
        """Format, invoke and extract. Returns None when no usable text came back."""
        body = self.format_history(messages, model)
        data = await self.invoke(body, api_key)
        reply = self.extract_reply(data)
        if not isinstance(reply, str) or not reply.strip():
            logger.warning("%s returned no usable text", self.provider_id)
            return None
        return reply


def _message_count(body: dict[str, Any]) -> int:
    for key in ("messages", "chat_history"):
        if isinstance(body.get(key), list):
            return len(body[key])
    return 0


_ADAPTERS: dict[str, type[ProviderAdapter]] = {}


def register_adapter(cls: type[ProviderAdapter]) -> type[ProviderAdapter]:
    """Class decorator adding an adapter to the registry under its provider_id."""
    if not cls.provider_id:
        raise ValueError(f"{cls.__name__} must set provider_id")
    if cls.provider_id in _ADAPTERS:
        raise ValueError(f"Adapter for '{cls.provider_id}' already registered")
    _ADAPTERS[cls.provider_id] = cls
    return cls


def get_adapter_class(provider_id: str) -> type[ProviderAdapter] | None:
    """Return the registered adapter class, None if the provider has none."""
    return _ADAPTERS.get(provider_id)


def registered_providers() -> list[str]:
    """Ids with an implemented adapter, in registration order."""
    return list(_ADAPTERS)
