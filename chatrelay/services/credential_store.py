"""CredentialStore: per-user LLM provider configuration.

Each user has at most one UserCredential row holding an encrypted
provider-keyed mapping {provider: {"apiKey": str, "model": str}} plus the
active provider. Saving is a read-modify-write with a provider-keyed
partial merge, so configuring a second provider keeps the first.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from chatrelay.db.models import UserCredential, utc_now_iso
from chatrelay.errors import StorageUnavailableError, ValidationError
from chatrelay.services.credential_encryption import (
    CredentialDecryptionError,
    decrypt_credentials,
    encrypt_credentials,
    get_or_create_key,
)

logger = logging.getLogger(__name__)


@dataclass
class CredentialConfig:
    """Caller-facing view of a user's configuration. Never holds API keys.

    Attributes:
        active_provider: Selected provider id, None when not configured.
        configs: provider id -> {"model": str}.
        has_api_key: The active provider has a non-empty stored key.
    """

    active_provider: str | None = None
    configs: dict[str, dict[str, str]] = field(default_factory=dict)
    has_api_key: bool = False

    @property
    def is_configured(self) -> bool:
        return self.active_provider is not None and bool(self.configs)


@dataclass(frozen=True)
class ActiveCredential:
    """Raw entry for the active provider. Either field may be empty."""

    provider: str
    api_key: str
    model: str


def _require_text(name: str, value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Provider, model, and API key are required")
    return value.strip()


class CredentialStore:
    """Read and upsert per-user provider credentials.

    Args:
        db: SQLAlchemy session (sync).
        key_dir: Optional key directory override (tests).
    """

    def __init__(self, db: Session, key_dir: str | None = None) -> None:
        self._db = db
        self._key_dir = key_dir
        self._key: bytes | None = None

    def _get_key(self) -> bytes:
        if self._key is None:
            self._key = get_or_create_key(self._key_dir)
        return self._key

    def _load_row(self, user_id: str) -> UserCredential | None:
        try:
            return self._db.execute(
                select(UserCredential).where(UserCredential.user_id == user_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Credential lookup failed for user %s: %s", user_id, e)
            raise StorageUnavailableError("credential lookup", e) from e

    def _decrypt(self, row: UserCredential) -> dict[str, dict]:
        """Decrypt a row's mapping; unreadable records count as empty."""
        try:
            configs = decrypt_credentials(
                row.encrypted_configs, self._get_key(), aad=row.user_id
            )
        except CredentialDecryptionError as e:
            logger.warning(
                "Credential record for user %s could not be decrypted: %s",
                row.user_id, e,
            )
            return {}
        return {k: v for k, v in configs.items() if isinstance(v, dict)}

    def get(self, user_id: str) -> CredentialConfig:
        """Return the user's configuration without secrets.

        A missing record or an empty mapping yields the not-configured
        view (active_provider None, configs empty).
        """
        row = self._load_row(user_id)
        if row is None:
            return CredentialConfig()
        configs = self._decrypt(row)
        if not configs:
            return CredentialConfig()
        active_entry = configs.get(row.active_provider) or {}
        return CredentialConfig(
            active_provider=row.active_provider or None,
            configs={
                provider: {"model": entry.get("model", "")}
                for provider, entry in configs.items()
            },
            has_api_key=bool(active_entry.get("apiKey")),
        )

    def get_active(self, user_id: str) -> ActiveCredential | None:
        """Return the raw entry for the active provider.

        Returns None when no provider is configured. When the active
        provider has no entry, an ActiveCredential with empty key and
        model is returned so callers can report an incomplete setup.
        """
        row = self._load_row(user_id)
        if row is None or not row.active_provider:
            return None
        configs = self._decrypt(row)
        if not configs:
            return None
        entry = configs.get(row.active_provider) or {}
        return ActiveCredential(
            provider=row.active_provider,
            api_key=entry.get("apiKey") or "",
            model=entry.get("model") or "",
        )

    def has_api_key(self, user_id: str) -> bool:
        """True when the active provider has a non-empty API key."""
        return self.get(user_id).has_api_key

    def save(self, user_id: str, provider: object, model: object, api_key: object) -> None:
        """Upsert the user's config for one provider and make it active.

        Other providers' stored entries are preserved.

        Raises:
            ValidationError: If any field is missing or not a non-empty string.
            StorageUnavailableError: If the write fails.
        """
        provider = _require_text("provider", provider)
        model = _require_text("model", model)
        api_key = _require_text("apiKey", api_key)

        row = self._load_row(user_id)
        configs = self._decrypt(row) if row is not None else {}
        configs[provider] = {"apiKey": api_key, "model": model}
        envelope = encrypt_credentials(configs, self._get_key(), aad=user_id)

        try:
            if row is None:
                row = UserCredential(
                    user_id=user_id,
                    encrypted_configs=envelope,
                    active_provider=provider,
                )
                self._db.add(row)
            else:
                row.encrypted_configs = envelope
                row.active_provider = provider
                row.updated_at = utc_now_iso()
            self._db.commit()
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error("Credential save failed for user %s: %s", user_id, e)
            raise StorageUnavailableError("credential save", e) from e

        logger.info(
            "Saved %s credentials for user %s (model=%s, providers=%d)",
            provider, user_id, model, len(configs),
        )
