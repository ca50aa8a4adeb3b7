"""Dispatch engine: turn one user message into one recorded reply.

Flow for dispatch():
    1. Record the user turn (before anything that can fail downstream).
    2. Resolve the user's active provider credentials. Missing or
       incomplete configuration produces a fixed fallback reply.
    3. Build context: system instruction + last HISTORY_LIMIT turns.
    4. Pick the adapter registered for the active provider and call it.
       Catalogued providers without an adapter get a "coming soon" reply,
       unknown ids a "not supported" reply.
    5. Record the reply as an assistant turn and return it.

Provider failures propagate as ProviderError after step 1; the user turn
stays stored and no assistant turn is written.

The stores use a sync SQLAlchemy session, so their calls run in worker
threads via asyncio.to_thread. Only the provider HTTP call runs on the
event loop.
"""

import asyncio
import logging
from collections.abc import Callable

from sqlalchemy.orm import Session

from chatrelay.services.conversation_store import ConversationStore, Turn
from chatrelay.services.credential_store import CredentialStore
from chatrelay.services.provider_registry import find_provider
from chatrelay.services.providers import ProviderAdapter, RoleMessage, get_adapter_class

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 10
ASSISTANT_SENDER = "Assistant"

SYSTEM_INSTRUCTION = (
    "You are a helpful assistant. Provide concise and accurate responses."
)
NOT_CONFIGURED_REPLY = (
    "Please configure an AI provider in your settings to enable AI responses."
)
INCOMPLETE_CONFIG_REPLY = (
    "Your AI provider configuration is incomplete. "
    "Please update your API key and model in settings."
)
EMPTY_RESPONSE_REPLY = "Sorry, I could not generate a response."
COMING_SOON_TEMPLATE = (
    "{name} integration is coming soon. Please choose another provider in settings."
)
UNSUPPORTED_TEMPLATE = "The AI provider '{provider}' is not supported."

AdapterFactory = Callable[[type[ProviderAdapter]], ProviderAdapter]


def build_context(history: list[Turn]) -> list[RoleMessage]:
    """Map stored turns (oldest first) to role-tagged messages behind the system turn."""
    messages = [RoleMessage(role="system", content=SYSTEM_INSTRUCTION)]
    for turn in history:
        messages.append(
            RoleMessage(role="user" if turn.is_user else "assistant", content=turn.content)
        )
    return messages


class DispatchEngine:
    """Per-request orchestration of history, credentials and provider call.

    Args:
        db: SQLAlchemy session (sync) shared by both stores.
        credential_store: Optional injected store (tests).
        adapter_factory: Builds an adapter instance from its class.
            Defaults to calling the class with no arguments.
    """

    def __init__(
        self,
        db: Session,
        credential_store: CredentialStore | None = None,
        adapter_factory: AdapterFactory | None = None,
    ) -> None:
        self._conversations = ConversationStore(db)
        self._credentials = credential_store or CredentialStore(db)
        self._adapter_factory = adapter_factory or (lambda cls: cls())

    async def dispatch(self, user_id: str, sender: str, message: str) -> str:
        """Record the message, produce a reply, record the reply.

        Args:
            user_id: Authenticated user identifier.
            sender: Label for the user turn (display name or email).
            message: Raw user message.

        Returns:
            The reply text (generated or fallback).

        Raises:
            ProviderError: Provider call failed; only the user turn is stored.
            StorageUnavailableError: A read or write failed.
        """
        await asyncio.to_thread(
            self._conversations.append, user_id, message, sender, True,
        )
        reply = await self._generate_reply(user_id)
        await asyncio.to_thread(
            self._conversations.append, user_id, reply, ASSISTANT_SENDER, False,
        )
        return reply

    async def _generate_reply(self, user_id: str) -> str:
        active = await asyncio.to_thread(self._credentials.get_active, user_id)
        if active is None:
            logger.info("User %s has no provider configured", user_id)
            return NOT_CONFIGURED_REPLY
        if not active.api_key or not active.model:
            logger.info(
                "User %s has incomplete %s configuration", user_id, active.provider,
            )
            return INCOMPLETE_CONFIG_REPLY

        adapter_cls = get_adapter_class(active.provider)
        if adapter_cls is None:
            descriptor = find_provider(active.provider)
            if descriptor is not None:
                return COMING_SOON_TEMPLATE.format(name=descriptor.name)
            logger.warning("User %s selected unknown provider %r", user_id, active.provider)
            return UNSUPPORTED_TEMPLATE.format(provider=active.provider)

        history = await asyncio.to_thread(
            self._conversations.recent_history, user_id, HISTORY_LIMIT,
        )
        context = build_context(history)

        adapter = self._adapter_factory(adapter_cls)
        reply = await adapter.generate(context, active.model, active.api_key)
        return reply if reply is not None else EMPTY_RESPONSE_REPLY
