"""Encryption of stored provider API keys.

Keys are encrypted with Fernet (AES-128-CBC + HMAC-SHA256) before they are
written and decrypted only when a provider call or health check needs them.
``ENCRYPTION_KEY`` must hold a urlsafe base64 Fernet key, as produced by
``Fernet.generate_key()``.
"""

from __future__ import annotations

import os

from cryptography.fernet import Fernet, InvalidToken

from .exceptions import CredentialEncryptionError

ENCRYPTION_KEY_ENV = "ENCRYPTION_KEY"


def get_fernet() -> Fernet:
    secret = os.getenv(ENCRYPTION_KEY_ENV)
    if not secret:
        raise CredentialEncryptionError(f"{ENCRYPTION_KEY_ENV} environment variable is required")
    try:
        return Fernet(secret.encode())
    except ValueError as exc:
        raise CredentialEncryptionError(
            f"{ENCRYPTION_KEY_ENV} is not a valid Fernet key"
        ) from exc


def encrypt_api_key(api_key: str) -> str:
    """Encrypt a plaintext API key into a UTF-8 Fernet token."""
    return get_fernet().encrypt(api_key.encode()).decode()


def decrypt_api_key(encrypted_api_key: str) -> str:
    try:
        return get_fernet().decrypt(encrypted_api_key.encode()).decode()
    except InvalidToken as exc:
        raise CredentialEncryptionError("Stored API key could not be decrypted") from exc


__all__ = ["decrypt_api_key", "encrypt_api_key", "get_fernet"]
