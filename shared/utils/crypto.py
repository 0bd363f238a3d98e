"""Symmetric encryption for secrets stored at rest (connection passwords)."""

# flake8: noqa: E501

import base64
import hashlib

from cryptography.fernet import Fernet, InvalidToken


class SecretBox:
    """Fernet wrapper that encrypts and decrypts text secrets."""

    def __init__(self, key: str):
        self._fernet = Fernet(key.encode("utf-8") if isinstance(key, str) else key)

    @classmethod
    def from_config(cls, config) -> "SecretBox":
        """
        Build from ``CONNECTION_ENCRYPTION_KEY`` or derive a key from ``SECRET_KEY``.

        A configured key must be a urlsafe base64 32-byte Fernet key.
        """
        key = config.get("CONNECTION_ENCRYPTION_KEY")
        if not key:
            digest = hashlib.sha256(config["SECRET_KEY"].encode("utf-8")).digest()
            key = base64.urlsafe_b64encode(digest).decode("ascii")
        return cls(key)

    def encrypt(self, plaintext: str) -> str:
        return self._fernet.encrypt(plaintext.encode("utf-8")).decode("ascii")

    def decrypt(self, token: str) -> str:
        """
        Raises:
            ValueError: If the token was not produced with this key
        """
        try:
            return self._fernet.decrypt(token.encode("ascii")).decode("utf-8")
        except InvalidToken as e:
            raise ValueError("Stored secret cannot be decrypted with the configured key") from e
