"""SQLAlchemy ORM models for the ChatRelay database.

Defines user accounts, per-user provider credential records, and the
append-only chat message log. Uses SQLAlchemy 2.0 style with Mapped and
mapped_column.
"""

from datetime import UTC, datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    mapped_column,
)

DEFAULT_ACTIVE_PROVIDER = "openai"


def generate_uuid() -> str:
    """Generate a UUID4 string for primary keys."""
    return str(uuid4())


def utc_now_iso() -> str:
    """Generate current UTC timestamp in ISO8601 format.

    Microsecond precision keeps lexical order equal to time order, which
    the message log relies on.
    """
    return datetime.now(UTC).isoformat(timespec="microseconds")


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserAccount(Base):
    """Local sign-in account.

    Attributes:
        id: Stable user identifier carried in the session token.
        username: Unique sign-in name.
        display_name: Name used as the sender label on user turns.
        email: Optional email; fallback identifier and sender label.
        password_hash: PBKDF2-SHA256 hash string (see account_service).
        created_at: ISO8601 creation timestamp.
    """

    __tablename__ = "user_accounts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    username: Mapped[str] = mapped_column(String(150), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    def __repr__(self) -> str:
        return f"<UserAccount(username={self.username!r})>"


class UserCredential(Base):
    """Per-user LLM provider configuration.

    The provider-keyed mapping {provider: {"apiKey": ..., "model": ...}}
    is stored as an AES-256-GCM JSON envelope bound to the user id, so
    API keys never sit in the table as plaintext.

    Attributes:
        id: UUID4 primary key.
        user_id: Owning user identifier (unique, one record per user).
        encrypted_configs: Envelope from credential_encryption.encrypt_credentials.
        active_provider: Provider used for dispatch.
        created_at: ISO8601 creation timestamp.
        updated_at: ISO8601 timestamp, service-managed.
    """

    __tablename__ = "user_credentials"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    encrypted_configs: Mapped[str] = mapped_column(Text, nullable=False)
    active_provider: Mapped[str] = mapped_column(
        String(50), nullable=False, default=DEFAULT_ACTIVE_PROVIDER
    )
    created_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )
    updated_at: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    def __repr__(self) -> str:
        return (
            f"<UserCredential(user_id={self.user_id!r}, "
            f"active_provider={self.active_provider!r})>"
        )


class ChatMessage(Base):
    """One conversation turn.

    Rows are never updated after insert. Per-user order is
    (timestamp, sequence); sequence breaks ties between turns written
    within the same microsecond.

    Attributes:
        id: UUID primary key.
        user_id: Owning user identifier.
        content: Message text.
        sender: Sender label ('Assistant' for replies).
        is_user: True for user-authored turns.
        sequence: Per-user monotonically increasing counter.
        timestamp: ISO8601 creation timestamp.
    """

    __tablename__ = "chat_messages"
    __table_args__ = (
        UniqueConstraint("user_id", "sequence", name="uq_chatmsg_user_seq"),
        Index("ix_chatmsg_user_ts", "user_id", "timestamp", "sequence"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    sender: Mapped[str] = mapped_column(String(255), nullable=False)
    is_user: Mapped[bool] = mapped_column(Boolean, nullable=False)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[str] = mapped_column(
        String(50), nullable=False, default=utc_now_iso
    )

    def __repr__(self) -> str:
        return (
            f"<ChatMessage(id={self.id!r}, user_id={self.user_id!r}, "
            f"is_user={self.is_user}, seq={self.sequence})>"
        )
