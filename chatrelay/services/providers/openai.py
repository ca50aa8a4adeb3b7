"""OpenAI chat-completions adapter.

Wire shape:
    POST {OPENAI_BASE_URL}/chat/completions
    {"model": "...", "messages": [{"role": "system"|"user"|"assistant", "content": "..."}]}
Reply text is choices[0].message.content.
"""

import os
from typing import Any

from chatrelay.services.providers.base import (
    ProviderAdapter,
    RoleMessage,
    register_adapter,
)

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"


@register_adapter
class OpenAIAdapter(ProviderAdapter):
    """Adapter for OpenAI-compatible chat completion APIs."""

    provider_id = "openai"

    def endpoint_url(self) -> str:
        base = os.environ.get("OPENAI_BASE_URL", "").strip() or DEFAULT_OPENAI_BASE_URL
        return f"{base.rstrip('/')}/chat/completions"

    def format_history(self, messages: list[RoleMessage], model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }

    def extract_reply(self, data: dict[str, Any]) -> str | None:
        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            return None
        message = choices[0].get("message") if isinstance(choices[0], dict) else None
        if not isinstance(message, dict):
            return None
        return message.get("content")
