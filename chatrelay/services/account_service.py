"""Local user accounts for credentials-based sign-in.

Passwords are stored as bcrypt hashes ('$2b$<rounds>$...'). bcrypt only
reads the first 72 bytes of a password, so longer ones are rejected at
account creation.
"""

import logging
import os
from dataclasses import dataclass

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.db.models import UserAccount
from chatrelay.errors import AuthenticationError, StorageUnavailableError, ValidationError

logger = logging.getLogger(__name__)

_BCRYPT_ROUNDS = 12
_MAX_PASSWORD_BYTES = 72

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "password"
DEMO_DISPLAY_NAME = "Demo User"
DEMO_EMAIL = "demo@example.com"


@dataclass(frozen=True)
class SessionUser:
    """Identity carried by a session."""

    id: str
    name: str | None
    email: str | None

    @property
    def sender_label(self) -> str:
        """Label stored on the user's chat turns."""
        return self.name or self.email or self.id

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "email": self.email}


def hash_password(password: str, rounds: int = _BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, encoded: str) -> bool:
    """Check a password against a stored bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), encoded.encode("utf-8"))
    except ValueError:
        return False


class AccountService:
    """Create and authenticate local accounts.

    Args:
        db: SQLAlchemy session (sync).
    """

    def __init__(self, db: Session) -> None:
        self._db = db

    def _find(self, username: str) -> UserAccount | None:
        try:
            return self._db.execute(
                select(UserAccount).where(UserAccount.username == username)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageUnavailableError("account lookup", e) from e

    def create_account(
        self,
        username: str,
        password: str,
        display_name: str | None = None,
        email: str | None = None,
        account_id: str | None = None,
    ) -> UserAccount:
        """Create an account.

        Raises:
            ValidationError: Empty username/password, password over 72 bytes,
                or username taken.
        """
        if not username or not username.strip() or not password:
            raise ValidationError("Username and password are required")
        if len(password.encode("utf-8")) > _MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password must be at most {_MAX_PASSWORD_BYTES} bytes"
            )
        account = UserAccount(
            username=username.strip(),
            password_hash=hash_password(password),
            display_name=display_name,
            email=email,
        )
        if account_id:
            account.id = account_id
        self._db.add(account)
        try:
            self._db.commit()
        except IntegrityError:
            self._db.rollback()
            raise ValidationError(f"Username '{username}' already exists") from None
        except SQLAlchemyError as e:
            self._db.rollback()
            raise StorageUnavailableError("account create", e) from e
        logger.info("Created account %s (%s)", account.username, account.id)
        return account

    def authenticate(self, username: object, password: object) -> SessionUser:
        """Return the session identity for valid credentials.

        Raises:
            AuthenticationError: Unknown user or wrong password.
        """
        if not isinstance(username, str) or not isinstance(password, str) \
                or not username or not password:
            raise AuthenticationError("Invalid credentials")
        account = self._find(username.strip())
        if account is None or not verify_password(password, account.password_hash):
            raise AuthenticationError("Invalid credentials")
        return SessionUser(id=account.id, name=account.display_name, email=account.email)

    def ensure_demo_account(self) -> None:
        """Seed the demo account if it does not exist yet."""
        if self._find(DEMO_USERNAME) is not None:
            return
        self.create_account(
            DEMO_USERNAME,
            DEMO_PASSWORD,
            display_name=DEMO_DISPLAY_NAME,
            email=DEMO_EMAIL,
            account_id="1",
        )


def should_seed_demo_account() -> bool:
    """CHATRELAY_SEED_DEMO_USER, enabled unless set to a false value."""
    raw = os.environ.get("CHATRELAY_SEED_DEMO_USER", "true").strip().lower()
    return raw not in {"0", "false", "no", "off"}
