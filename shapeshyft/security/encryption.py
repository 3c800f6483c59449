"""API key encryption at rest.

AES-256-CBC with PKCS7 padding. Ciphertext and IV are stored as hex strings
next to each other on the key record; the 32-byte key comes from
SHAPESHYFT_ENCRYPTION_KEY as 64 hex characters.
"""

from __future__ import annotations

import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from shapeshyft.core.errors import ShapeshyftError

_IV_BYTES = 16
_BLOCK_BITS = 128


class EncryptionConfigurationError(ShapeshyftError):
    """Raised when the encryption key is missing or malformed."""


class ApiKeyCipher:
    """Symmetric encrypt/decrypt for provider credentials."""

    def __init__(self, key_hex: str) -> None:
        if not key_hex or len(key_hex) != 64:
            raise EncryptionConfigurationError('Encryption key must be 64 hex characters (32 bytes)')
        try:
            self._key = bytes.fromhex(key_hex)
        except ValueError as exc:
            raise EncryptionConfigurationError('Encryption key must be hex encoded') from exc

    def encrypt(self, plaintext: str) -> tuple[str, str]:
        """Return (ciphertext_hex, iv_hex)."""
        iv = os.urandom(_IV_BYTES)
        padder = padding.PKCS7(_BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode('utf-8')) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return ciphertext.hex(), iv.hex()

    def decrypt(self, ciphertext_hex: str, iv_hex: str) -> str:
        decryptor = Cipher(algorithms.AES(self._key), modes.CBC(bytes.fromhex(iv_hex))).decryptor()
        padded = decryptor.update(bytes.fromhex(ciphertext_hex)) + decryptor.finalize()

        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        return (unpadder.update(padded) + unpadder.finalize()).decode('utf-8')
