"""Append-only per-user chat history.

Thin layer between the API/dispatch engine and the ChatMessage model.
All reads return turns oldest first regardless of how they were queried.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.db.models import ChatMessage, generate_uuid
from chatrelay.errors import StorageUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Turn:
    """Immutable snapshot of one stored ChatMessage."""

    id: str
    user_id: str
    content: str
    sender: str
    is_user: bool
    timestamp: str
    sequence: int

    @classmethod
    def from_row(cls, row: ChatMessage) -> "Turn":
        return cls(
            id=row.id,
            user_id=row.user_id,
            content=row.content,
            sender=row.sender,
            is_user=row.is_user,
            timestamp=row.timestamp,
            sequence=row.sequence,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "sender": self.sender,
            "isUser": self.is_user,
            "userId": self.user_id,
            "timestamp": self.timestamp,
        }


class ConversationStore:
    """Append and read chat turns for a user.

    Args:
        db: SQLAlchemy session (sync).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def append(self, user_id: str, content: str, sender: str, is_user: bool) -> Turn:
        """Record one turn and commit it.

        Raises:
            StorageUnavailableError: If the insert fails.
        """
        try:
            # Single-writer SQLite makes SELECT max + INSERT safe here; the
            # unique (user_id, sequence) constraint rejects a lost race.
            max_seq = self._db.execute(
                select(func.max(ChatMessage.sequence)).where(ChatMessage.user_id == user_id)
            ).scalar()
            row = ChatMessage(
                id=generate_uuid(),
                user_id=user_id,
                content=content,
                sender=sender,
                is_user=is_user,
                sequence=(max_seq or 0) + 1,
            )
            self._db.add(row)
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error("Failed to append turn for user %s: %s", user_id, e)
            raise StorageUnavailableError("message append", e) from e
        return Turn.from_row(row)

    def _latest(self, user_id: str, limit: int) -> list[Turn]:
        try:
            rows = self._db.execute(
                select(ChatMessage)
                .where(ChatMessage.user_id == user_id)
                .order_by(ChatMessage.timestamp.desc(), ChatMessage.sequence.desc())
                .limit(limit)
            ).scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to read history for user %s: %s", user_id, e)
            raise StorageUnavailableError("history read", e) from e
        return [Turn.from_row(r) for r in reversed(rows)]

    def recent_history(self, user_id: str, limit: int) -> list[Turn]:
        """Return the most recent `limit` turns, oldest first."""
        if limit <= 0:
            return []
        return self._latest(user_id, limit)

    def all_history(self, user_id: str, max_count: int) -> list[Turn]:
        """Return the user's history for display, oldest first.

        Truncated to the `max_count` most recent turns.
        """
        return self.recent_history(user_id, max_count)

    def count(self, user_id: str) -> int:
        """Number of turns stored for the user."""
        try:
            return self._db.execute(
                select(func.count(ChatMessage.id)).where(ChatMessage.user_id == user_id)
            ).scalar_one()
        except SQLAlchemyError as e:
            raise StorageUnavailableError("history count", e) from e
