"""
Credential Cipher
AES-256-CBC primitives plus the two keyed ciphers built on them.

StateTokenCipher uses one fixed key and IV for every state token.
CredentialCipher uses the vault key with a fresh random IV per record.
The two are deliberately separate classes with separate keys.
"""

import base64
import binascii
import logging
import os

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from shared.exceptions import CryptoError

logger = logging.getLogger(__name__)

KEY_SIZE = 32  # AES-256
IV_SIZE = 16   # AES block size


def _check_key_material(key: bytes, iv: bytes) -> None:
    if len(key) != KEY_SIZE:
        raise CryptoError(f"Cipher key must be {KEY_SIZE} bytes, got {len(key)}")
    if len(iv) != IV_SIZE:
        raise CryptoError(f"Cipher IV must be {IV_SIZE} bytes, got {len(iv)}")


def encrypt(key: bytes, iv: bytes, plaintext: bytes) -> bytes:
    """
    Encrypt bytes with AES-256-CBC and PKCS7 padding.

    Raises:
        CryptoError: If the key or IV has the wrong length
    """
    _check_key_material(key, iv)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(plaintext) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt(key: bytes, iv: bytes, ciphertext: bytes) -> bytes:
    """
    Decrypt AES-256-CBC ciphertext and strip PKCS7 padding.

    Raises:
        CryptoError: If the key or IV has the wrong length, or the ciphertext
            is truncated or does not unpad cleanly
    """
    _check_key_material(key, iv)

    if not ciphertext or len(ciphertext) % IV_SIZE != 0:
        raise CryptoError("Ciphertext length is not a multiple of the block size")

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    try:
        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise CryptoError("Ciphertext could not be decrypted") from e


def _b64decode(value: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CryptoError("Ciphertext is not valid base64") from e


def _decode_utf8(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CryptoError("Decrypted data is not valid UTF-8") from e


class StateTokenCipher:
    """
    Cipher for install state tokens.

    Uses a fixed, process-wide key and IV. Every state token carries a
    freshly issued CSRF token, so no two plaintexts repeat.
    """

    def __init__(self, key: bytes, iv: bytes):
        _check_key_material(key, iv)
        self._key = key
        self._iv = iv

    def encrypt_text(self, plaintext: str) -> str:
        """Encrypt a string and return base64 ciphertext."""
        ciphertext = encrypt(self._key, self._iv, plaintext.encode("utf-8"))
        return base64.b64encode(ciphertext).decode("ascii")

    def decrypt_text(self, ciphertext: str) -> str:
        """Decrypt base64 ciphertext produced by encrypt_text."""
        return _decode_utf8(decrypt(self._key, self._iv, _b64decode(ciphertext)))


class CredentialCipher:
    """
    Cipher for per-principal scanner credentials at rest.

    Every call to encrypt_text generates a new random IV which must be
    stored next to the ciphertext and handed back to decrypt_text.
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise CryptoError(f"Cipher key must be {KEY_SIZE} bytes, got {len(key)}")
        self._key = key

    def encrypt_text(self, plaintext: str) -> tuple[str, bytes]:
        """
        Encrypt a credential under a fresh IV.

        Returns:
            Tuple of (base64 ciphertext, iv)
        """
        iv = os.urandom(IV_SIZE)
        ciphertext = encrypt(self._key, iv, plaintext.encode("utf-8"))
        return base64.b64encode(ciphertext).decode("ascii"), iv

    def decrypt_text(self, ciphertext: str, iv: bytes) -> str:
        """Decrypt a credential with the IV stored on its own record."""
        return _decode_utf8(decrypt(self._key, iv, _b64decode(ciphertext)))


def mask_secret(value: str | None) -> str:
    """Mask a secret for logging, keeping only the last four characters."""
    if not value or len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"
