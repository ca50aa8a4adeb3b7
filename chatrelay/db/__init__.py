"""Database module for ChatRelay persistence."""

from chatrelay.db.connection import (
    SessionLocal,
    engine,
    get_db,
    get_db_context,
    init_db,
)
from chatrelay.db.models import (
    Base,
    ChatMessage,
    UserAccount,
    UserCredential,
)

__all__ = [
    # Models
    "Base",
    "ChatMessage",
    "UserAccount",
    "UserCredential",
    # Connection
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "init_db",
]
