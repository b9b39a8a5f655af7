"""
Unit tests for application secret loading
"""

import base64

import pytest
from unittest.mock import AsyncMock

from shared.config import Settings
from shared.exceptions import ConfigurationError
from shared.secrets import SecretsCache, decode_key_material, load_app_secrets


def make_source(values: dict) -> AsyncMock:
    source = AsyncMock()

    async def get_secret(name):
        if name not in values:
            raise ConfigurationError(f"Secret not found: {name}", setting=name)
        return values[name]

    source.get_secret.side_effect = get_secret
    return source


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def secret_values(settings):
    return {
        settings.slack_client_id_secret: "123.456",
        settings.slack_client_secret_secret: "client-secret",
        settings.state_token_key_secret: "s" * 32,
        settings.state_token_iv_secret: base64.b64encode(b"i" * 16).decode(),
        settings.api_key_cipher_key_secret: base64.b64encode(b"v" * 32).decode(),
        settings.default_scanner_api_key_secret: "default-key",
    }


class TestDecodeKeyMaterial:
    def test_accepts_raw_text_of_exact_length(self):
        assert decode_key_material("k" * 32, 32, "key") == b"k" * 32

    def test_accepts_base64_of_exact_length(self):
        raw = bytes(range(32))

        assert decode_key_material(base64.b64encode(raw).decode(), 32, "key") == raw

    @pytest.mark.parametrize("value", ["short", "k" * 31, base64.b64encode(b"x" * 20).decode(), "@@@@"])
    def test_rejects_anything_else(self, value):
        with pytest.raises(ConfigurationError) as exc_info:
            decode_key_material(value, 32, "state-token-cipher-key")

        assert exc_info.value.setting == "state-token-cipher-key"


class TestSecretsCache:
    async def test_fetches_each_secret_once(self):
        source = make_source({"a": "1"})
        cache = SecretsCache(source)

        assert await cache.get_secret("a") == "1"
        assert await cache.get_secret("a") == "1"

        source.get_secret.assert_awaited_once_with("a")

    async def test_caches_are_independent(self):
        source = make_source({"a": "1"})

        await SecretsCache(source).get_secret("a")
        await SecretsCache(source).get_secret("a")

        assert source.get_secret.await_count == 2

    async def test_missing_secret_propagates(self):
        cache = SecretsCache(make_source({}))

        with pytest.raises(ConfigurationError, match="Secret not found"):
            await cache.get_secret("missing")


class TestLoadAppSecrets:
    async def test_loads_and_decodes_all_secrets(self, settings, secret_values):
        app_secrets = await load_app_secrets(settings, SecretsCache(make_source(secret_values)))

        assert app_secrets.slack_client_id == "123.456"
        assert app_secrets.slack_client_secret == "client-secret"
        assert app_secrets.state_token_key == b"s" * 32
        assert app_secrets.state_token_iv == b"i" * 16
        assert app_secrets.api_key_cipher_key == b"v" * 32
        assert app_secrets.default_scanner_api_key == "default-key"

    async def test_repr_hides_secret_material(self, settings, secret_values):
        app_secrets = await load_app_secrets(settings, SecretsCache(make_source(secret_values)))

        assert "client-secret" not in repr(app_secrets)
        assert "default-key" not in repr(app_secrets)

    async def test_state_and_vault_keys_must_differ(self, settings, secret_values):
        secret_values[settings.api_key_cipher_key_secret] = "s" * 32

        with pytest.raises(ConfigurationError, match="must be different"):
            await load_app_secrets(settings, SecretsCache(make_source(secret_values)))

    async def test_malformed_iv_is_a_configuration_error(self, settings, secret_values):
        secret_values[settings.state_token_iv_secret] = "too-short"

        with pytest.raises(ConfigurationError):
            await load_app_secrets(settings, SecretsCache(make_source(secret_values)))
