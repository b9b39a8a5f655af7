"""
State Token Codec
Carries install-time intent (CSRF token + optional scanner API key) through
the OAuth redirect as an encrypted, opaque `state` parameter.
"""

import json
import logging

from pydantic import ValidationError

from shared.crypto import StateTokenCipher
from shared.exceptions import InvalidStateTokenError
from shared.models import StateToken

logger = logging.getLogger(__name__)


class StateTokenCodec:
    def __init__(self, cipher: StateTokenCipher):
        self._cipher = cipher

    def encode(self, token: StateToken) -> str:
        """Serialize and encrypt a state token to base64 ciphertext."""
        return self._cipher.encrypt_text(token.to_wire())

    def decode(self, state: str | None) -> StateToken:
        """
        Decrypt and parse a `state` parameter.

        Raises:
            CryptoError: If the ciphertext cannot be decrypted
            InvalidStateTokenError: If the plaintext is not a state token
        """
        if not state:
            raise InvalidStateTokenError("State parameter is missing")

        plaintext = self._cipher.decrypt_text(state)

        try:
            return StateToken.model_validate(json.loads(plaintext))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Decrypted state token has unexpected shape: {type(e).__name__}")
            raise InvalidStateTokenError() from None
