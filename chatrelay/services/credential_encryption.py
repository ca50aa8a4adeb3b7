"""AES-256-GCM encryption for per-user provider credentials at rest.

Key source precedence:
    1. CHATRELAY_CREDENTIAL_KEY env var (base64-encoded 32-byte key)
    2. CHATRELAY_CREDENTIAL_KEY_FILE env var (path to raw key file)
    3. platformdirs local file (auto-generated on first use)

Ciphertext is a versioned JSON envelope:
    {"v": 1, "alg": "AES-256-GCM", "nonce": "<b64>", "ct": "<b64>"}
The AAD is the owning user id, so an envelope copied onto another
user's record fails authentication.
"""

import base64
import binascii
import json
import logging
import os
import platform
import stat

from cryptography.hazmat.primitives.ciphers.aead import AESGCM

logger = logging.getLogger(__name__)

KEY_FILENAME = ".chatrelay_key"
_CURRENT_VERSION = 1
_ALGORITHM = "AES-256-GCM"
_REQUIRED_KEY_LENGTH = 32
_NONCE_LENGTH = 12


class CredentialDecryptionError(Exception):
    """Raised when credential decryption fails for any reason."""


def get_default_key_dir() -> str:
    """Return the app data directory for key storage, creating it if needed."""
    from chatrelay.utils.paths import ensure_dirs_exist, get_data_dir

    ensure_dirs_exist()
    return str(get_data_dir())


def _check_length(key: bytes, source: str) -> bytes:
    if len(key) != _REQUIRED_KEY_LENGTH:
        raise ValueError(
            f"{source} has invalid length {len(key)} (expected {_REQUIRED_KEY_LENGTH})"
        )
    return key


def _read_key_file(path: str) -> bytes:
    with open(path, "rb") as f:
        return _check_length(f.read(), f"Key file {path}")


def _warn_if_permissive(path: str) -> None:
    if platform.system() == "Windows":
        return
    mode = stat.S_IMODE(os.stat(path).st_mode)
    if mode & (stat.S_IRGRP | stat.S_IWGRP | stat.S_IROTH | stat.S_IWOTH):
        logger.warning(
            "Key file %s has permissions %o, recommend chmod 600", path, mode,
        )


def get_or_create_key(key_dir: str | None = None) -> bytes:
    """Load or generate the 32-byte AES-256 encryption key.

    Args:
        key_dir: Directory for the auto-generated key file (source 3 only).
            Defaults to the platformdirs app-data directory.

    Returns:
        32-byte encryption key.

    Raises:
        ValueError: If a configured key has the wrong length or bad base64,
            or CHATRELAY_CREDENTIAL_KEY_FILE does not name a regular file.
    """
    env_key = os.environ.get("CHATRELAY_CREDENTIAL_KEY", "").strip()
    if env_key:
        try:
            key = base64.b64decode(env_key, validate=True)
        except binascii.Error as e:
            raise ValueError(
                f"CHATRELAY_CREDENTIAL_KEY contains invalid base64: {e}"
            ) from e
        return _check_length(key, "CHATRELAY_CREDENTIAL_KEY")

    env_key_file = os.environ.get("CHATRELAY_CREDENTIAL_KEY_FILE", "").strip()
    if env_key_file:
        if os.path.islink(env_key_file):
            raise ValueError(
                f"CHATRELAY_CREDENTIAL_KEY_FILE is a symlink: {env_key_file}"
            )
        if not os.path.isfile(env_key_file):
            raise ValueError(
                f"CHATRELAY_CREDENTIAL_KEY_FILE is not a regular file: {env_key_file}"
            )
        return _read_key_file(env_key_file)

    directory = key_dir or get_default_key_dir()
    os.makedirs(directory, exist_ok=True)
    key_path = os.path.join(directory, KEY_FILENAME)

    if os.path.exists(key_path):
        key = _read_key_file(key_path)
        _warn_if_permissive(key_path)
        return key

    key = os.urandom(_REQUIRED_KEY_LENGTH)
    try:
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except FileExistsError:
        # Another worker created it between the exists() check and open().
        return _read_key_file(key_path)
    try:
        os.write(fd, key)
    finally:
        os.close(fd)
    if platform.system() != "Windows":
        os.chmod(key_path, stat.S_IRUSR | stat.S_IWUSR)

    logger.info("Generated new credential encryption key at %s", key_path)
    return key


def encrypt_credentials(credentials: dict, key: bytes, aad: str = "") -> str:
    """Encrypt a credentials dict to a versioned JSON envelope string.

    Args:
        credentials: JSON-serializable dict.
        key: 32-byte AES-256 key.
        aad: Additional authenticated data (the owning user id).

    Returns:
        JSON envelope string.

    Raises:
        ValueError: If key is not exactly 32 bytes.
    """
    _check_length(key, "Encryption key")
    nonce = os.urandom(_NONCE_LENGTH)
    plaintext = json.dumps(credentials, sort_keys=True).encode("utf-8")
    ciphertext = AESGCM(key).encrypt(nonce, plaintext, aad.encode("utf-8") if aad else None)
    return json.dumps({
        "v": _CURRENT_VERSION,
        "alg": _ALGORITHM,
        "nonce": base64.b64encode(nonce).decode("ascii"),
        "ct": base64.b64encode(ciphertext).decode("ascii"),
    })


def decrypt_credentials(encrypted: str, key: bytes, aad: str = "") -> dict:
    """Decrypt a JSON envelope produced by encrypt_credentials.

    Args:
        encrypted: JSON envelope string.
        key: 32-byte AES-256 key.
        aad: Additional authenticated data used at encryption time.

    Returns:
        Decrypted credentials dict.

    Raises:
        CredentialDecryptionError: On any failure, including wrong key length,
            tampered ciphertext or mismatched AAD.
    """
    if len(key) != _REQUIRED_KEY_LENGTH:
        raise CredentialDecryptionError(
            f"Decryption key must be exactly {_REQUIRED_KEY_LENGTH} bytes (got {len(key)})"
        )

    try:
        envelope = json.loads(encrypted)
    except (json.JSONDecodeError, TypeError) as e:
        raise CredentialDecryptionError(f"Invalid envelope format: {e}") from e
    if not isinstance(envelope, dict):
        raise CredentialDecryptionError("Envelope is not a JSON object")

    if envelope.get("v") != _CURRENT_VERSION:
        raise CredentialDecryptionError(
            f"Unsupported envelope version {envelope.get('v')} (expected {_CURRENT_VERSION})"
        )
    if envelope.get("alg") != _ALGORITHM:
        raise CredentialDecryptionError(
            f"Unsupported algorithm '{envelope.get('alg')}' (expected '{_ALGORITHM}')"
        )

    try:
        nonce = base64.b64decode(envelope["nonce"], validate=True)
        ciphertext = base64.b64decode(envelope["ct"], validate=True)
    except (KeyError, TypeError, binascii.Error) as e:
        raise CredentialDecryptionError(f"Malformed envelope fields: {e}") from e

    if len(nonce) != _NONCE_LENGTH:
        raise CredentialDecryptionError(
            f"Invalid nonce length {len(nonce)} (expected {_NONCE_LENGTH})"
        )

    try:
        plaintext = AESGCM(key).decrypt(nonce, ciphertext, aad.encode("utf-8") if aad else None)
        result = json.loads(plaintext.decode("utf-8"))
    except Exception as e:
        raise CredentialDecryptionError(f"Decryption failed: {e}") from e

    if not isinstance(result, dict):
        raise CredentialDecryptionError(
            f"Decrypted payload is not a dict (got {type(result).__name__})"
        )
    return result
