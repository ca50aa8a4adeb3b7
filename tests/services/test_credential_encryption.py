"""Tests for AES-256-GCM credential encryption and key management."""

import base64
import json
import os
import stat

import pytest

from chatrelay.services.credential_encryption import (
    KEY_FILENAME,
    CredentialDecryptionError,
    decrypt_credentials,
    encrypt_credentials,
    get_or_create_key,
)

KEY = b"\x01" * 32


@pytest.fixture
def no_env_key(monkeypatch):
    monkeypatch.delenv("CHATRELAY_CREDENTIAL_KEY", raising=False)
    monkeypatch.delenv("CHATRELAY_CREDENTIAL_KEY_FILE", raising=False)


class TestEncryptDecrypt:

    def test_round_trip(self):
        creds = {"openai": {"apiKey": "sk-test", "model": "gpt-4"}}
        envelope = encrypt_credentials(creds, KEY, aad="alice")
        assert decrypt_credentials(envelope, KEY, aad="alice") == creds

    def test_envelope_format(self):
        envelope = json.loads(encrypt_credentials({"a": 1}, KEY))
        assert envelope["v"] == 1
        assert envelope["alg"] == "AES-256-GCM"
        assert len(base64.b64decode(envelope["nonce"])) == 12

    def test_plaintext_not_in_envelope(self):
        envelope = encrypt_credentials({"apiKey": "sk-very-secret"}, KEY)
        assert "sk-very-secret" not in envelope

    def test_nonce_differs_each_call(self):
        assert encrypt_credentials({"a": 1}, KEY) != encrypt_credentials({"a": 1}, KEY)

    def test_wrong_aad_fails(self):
        envelope = encrypt_credentials({"a": 1}, KEY, aad="alice")
        with pytest.raises(CredentialDecryptionError):
            decrypt_credentials(envelope, KEY, aad="bob")

    def test_wrong_key_fails(self):
        envelope = encrypt_credentials({"a": 1}, KEY)
        with pytest.raises(CredentialDecryptionError):
            decrypt_credentials(envelope, b"\x02" * 32)

    def test_short_key_rejected_on_encrypt(self):
        with pytest.raises(ValueError):
            encrypt_credentials({"a": 1}, b"short")

    def test_short_key_rejected_on_decrypt(self):
        envelope = encrypt_credentials({"a": 1}, KEY)
        with pytest.raises(CredentialDecryptionError):
            decrypt_credentials(envelope, b"short")

    @pytest.mark.parametrize("envelope", [
        "not json",
        "[]",
        json.dumps({"v": 2, "alg": "AES-256-GCM", "nonce": "", "ct": ""}),
        json.dumps({"v": 1, "alg": "ROT13", "nonce": "", "ct": ""}),
        json.dumps({"v": 1, "alg": "AES-256-GCM"}),
        json.dumps({"v": 1, "alg": "AES-256-GCM", "nonce": "AAAA", "ct": "AAAA"}),
    ])
    def test_malformed_envelopes(self, envelope):
        with pytest.raises(CredentialDecryptionError):
            decrypt_credentials(envelope, KEY)


class TestGetOrCreateKey:

    def test_env_key_wins(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHATRELAY_CREDENTIAL_KEY", base64.b64encode(KEY).decode())
        assert get_or_create_key(str(tmp_path)) == KEY
        assert not (tmp_path / KEY_FILENAME).exists()

    def test_env_key_bad_base64(self, monkeypatch):
        monkeypatch.setenv("CHATRELAY_CREDENTIAL_KEY", "!!!not-base64!!!")
        with pytest.raises(ValueError, match="invalid base64"):
            get_or_create_key()

    def test_env_key_wrong_length(self, monkeypatch):
        monkeypatch.setenv("CHATRELAY_CREDENTIAL_KEY", base64.b64encode(b"x" * 16).decode())
        with pytest.raises(ValueError, match="invalid length"):
            get_or_create_key()

    def test_key_file_env(self, no_env_key, monkeypatch, tmp_path):
        key_file = tmp_path / "key.bin"
        key_file.write_bytes(KEY)
        monkeypatch.setenv("CHATRELAY_CREDENTIAL_KEY_FILE", str(key_file))
        assert get_or_create_key() == KEY

    def test_key_file_env_missing_file(self, no_env_key, monkeypatch, tmp_path):
        monkeypatch.setenv("CHATRELAY_CREDENTIAL_KEY_FILE", str(tmp_path / "missing"))
        with pytest.raises(ValueError, match="not a regular file"):
            get_or_create_key()

    def test_generates_and_reuses_key_file(self, no_env_key, tmp_path):
        first = get_or_create_key(str(tmp_path))
        second = get_or_create_key(str(tmp_path))

        assert len(first) == 32
        assert first == second

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permissions")
    def test_generated_key_file_is_private(self, no_env_key, tmp_path):
        get_or_create_key(str(tmp_path))
        mode = stat.S_IMODE((tmp_path / KEY_FILENAME).stat().st_mode)
        assert mode == 0o600
