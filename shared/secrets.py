"""
Application Secrets
Loads the secret material the app needs from Key Vault, once, into an
explicit AppSecrets value.
"""

import base64
import binascii
import logging
from dataclasses import dataclass, field
from typing import Protocol

from shared.config import Settings
from shared.crypto import IV_SIZE, KEY_SIZE
from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class SecretSource(Protocol):
    async def get_secret(self, name: str) -> str: ...


class SecretsCache:
    """
    Per-instance cache in front of a secret source.

    Each secret is fetched at most once for the lifetime of the cache.
    """

    def __init__(self, source: SecretSource):
        self._source = source
        self._secrets: dict[str, str] = {}

    async def get_secret(self, name: str) -> str:
        secret = self._secrets.get(name)
        if secret is None:
            logger.info(f"No cached secret found, fetching {name} from Key Vault")
            secret = await self._source.get_secret(name)
            self._secrets[name] = secret
        return secret


@dataclass(frozen=True)
class AppSecrets:
    """Secret material resolved at start-up"""
    slack_client_id: str
    slack_client_secret: str = field(repr=False)
    state_token_key: bytes = field(repr=False)
    state_token_iv: bytes = field(repr=False)
    api_key_cipher_key: bytes = field(repr=False)
    default_scanner_api_key: str = field(repr=False)


def decode_key_material(value: str, expected_length: int, name: str) -> bytes:
    """
    Decode cipher key material stored as a secret.

    Accepts the raw text when it is exactly expected_length bytes, otherwise
    base64 of exactly expected_length bytes.

    Raises:
        ConfigurationError: If the value matches neither form
    """
    raw = value.encode("utf-8")
    if len(raw) == expected_length:
        return raw

    try:
        decoded = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        decoded = b""

    if len(decoded) == expected_length:
        return decoded

    raise ConfigurationError(
        f"Secret '{name}' must be {expected_length} bytes (raw or base64)",
        setting=name
    )


async def load_app_secrets(settings: Settings, secrets: SecretsCache) -> AppSecrets:
    """
    Resolve every secret named in settings.

    Args:
        settings: Application settings (secret names)
        secrets: Cache to read through

    Returns:
        AppSecrets with decoded key material
    """
    state_token_key = await secrets.get_secret(settings.state_token_key_secret)
    state_token_iv = await secrets.get_secret(settings.state_token_iv_secret)
    api_key_cipher_key = await secrets.get_secret(settings.api_key_cipher_key_secret)

    app_secrets = AppSecrets(
        slack_client_id=await secrets.get_secret(settings.slack_client_id_secret),
        slack_client_secret=await secrets.get_secret(settings.slack_client_secret_secret),
        state_token_key=decode_key_material(
            state_token_key, KEY_SIZE, settings.state_token_key_secret),
        state_token_iv=decode_key_material(
            state_token_iv, IV_SIZE, settings.state_token_iv_secret),
        api_key_cipher_key=decode_key_material(
            api_key_cipher_key, KEY_SIZE, settings.api_key_cipher_key_secret),
        default_scanner_api_key=await secrets.get_secret(settings.default_scanner_api_key_secret),
    )

    if app_secrets.state_token_key == app_secrets.api_key_cipher_key:
        raise ConfigurationError(
            "State token key and API key cipher key must be different secrets",
            setting=settings.api_key_cipher_key_secret
        )

    logger.info("Application secrets loaded")
    return app_secrets
