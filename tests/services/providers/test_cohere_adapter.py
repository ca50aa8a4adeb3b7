"""Tests for the Cohere chat adapter."""

import json

import httpx
import pytest

from chatrelay.services.providers import CohereAdapter, RoleMessage


class TestFormat:

    def test_last_user_turn_becomes_message(self):
        body = CohereAdapter().format_history([
            RoleMessage("system", "Be brief."),
            RoleMessage("user", "Hi"),
            RoleMessage("assistant", "Hello!"),
            RoleMessage("user", "How are you?"),
        ], "command-r")

        assert body == {
            "model": "command-r",
            "message": "How are you?",
            "preamble": "Be brief.",
            "chat_history": [
                {"role": "USER", "message": "Hi"},
                {"role": "CHATBOT", "message": "Hello!"},
            ],
        }

    def test_no_system_turn_omits_preamble(self):
        body = CohereAdapter().format_history([RoleMessage("user", "Hi")], "command")

        assert "preamble" not in body
        assert body["message"] == "Hi"
        assert body["chat_history"] == []

    def test_trailing_assistant_turn_stays_in_history(self):
        body = CohereAdapter().format_history([
            RoleMessage("user", "Hi"),
            RoleMessage("assistant", "Hello!"),
        ], "command")

        assert body["message"] == ""
        assert len(body["chat_history"]) == 2

    def test_endpoint(self, monkeypatch):
        monkeypatch.delenv("COHERE_BASE_URL", raising=False)
        assert CohereAdapter().endpoint_url() == "https://api.cohere.ai/v1/chat"


class TestGenerate:

    @pytest.mark.asyncio
    async def test_reply_from_text_field(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"text": "I'm well.", "generation_id": "g1"})

        adapter = CohereAdapter(timeout=5, transport=httpx.MockTransport(handler))
        reply = await adapter.generate([RoleMessage("user", "How are you?")], "command", "co-key")

        assert reply == "I'm well."
        assert seen[0].url.path == "/v1/chat"
        assert seen[0].headers["Authorization"] == "Bearer co-key"
        assert json.loads(seen[0].content)["message"] == "How are you?"

    @pytest.mark.asyncio
    async def test_missing_text_is_none(self):
        adapter = CohereAdapter(
            timeout=5, transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})),
        )
        assert await adapter.generate([RoleMessage("user", "x")], "command", "k") is None
