"""Service layer for ChatRelay.

Provides the provider catalog, credential and conversation stores,
account/session handling and the dispatch engine.
"""

from chatrelay.services.conversation_store import ConversationStore, Turn
from chatrelay.services.credential_store import (
    ActiveCredential,
    CredentialConfig,
    CredentialStore,
)
from chatrelay.services.dispatch_engine import DispatchEngine

__all__ = [
    "ConversationStore",
    "Turn",
    "CredentialStore",
    "CredentialConfig",
    "ActiveCredential",
    "DispatchEngine",
]
