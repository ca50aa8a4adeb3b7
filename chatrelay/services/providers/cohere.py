"""Cohere chat adapter (v1 chat API).

Cohere takes the newest user message separately from the prior turns:
    POST {COHERE_BASE_URL}/chat
    {
        "model": "...",
        "message": "<latest user turn>",
        "preamble": "<system instruction>",
        "chat_history": [{"role": "USER"|"CHATBOT", "message": "..."}]
    }
Reply text is the top-level "text" field.
"""

import os
from typing import Any

from chatrelay.services.providers.base import (
    ProviderAdapter,
    RoleMessage,
    register_adapter,
)

DEFAULT_COHERE_BASE_URL = "https://api.cohere.ai/v1"

_COHERE_ROLES = {"user": "USER", "assistant": "CHATBOT"}


@register_adapter
class CohereAdapter(ProviderAdapter):
    """Adapter for Cohere's chat endpoint."""

    provider_id = "cohere"

    def endpoint_url(self) -> str:
        base = os.environ.get("COHERE_BASE_URL", "").strip() or DEFAULT_COHERE_BASE_URL
        return f"{base.rstrip('/')}/chat"

    def format_history(self, messages: list[RoleMessage], model: str) -> dict[str, Any]:
        system = [m.content for m in messages if m.role == "system"]
        turns = [m for m in messages if m.role != "system"]

        # The trailing user turn is the prompt; everything before is history.
        message = ""
        if turns and turns[-1].role == "user":
            message = turns.pop().content

        body: dict[str, Any] = {
            "model": model,
            "message": message,
            "chat_history": [
                {"role": _COHERE_ROLES[m.role], "message": m.content} for m in turns
            ],
        }
        if system:
            body["preamble"] = "\n\n".join(system)
        return body

    def extract_reply(self, data: dict[str, Any]) -> str | None:
        return data.get("text")
