"""
Pytest fixtures shared by all unit tests.

Provides:
- Cipher key material and keyed ciphers
- An in-memory Table Storage client patched into AsyncTableStorageService
- Repositories and a credential vault backed by that table client
"""

import pytest
from unittest.mock import patch

from shared.crypto import CredentialCipher, StateTokenCipher
from shared.repositories.credentials import CredentialRepository
from shared.repositories.csrf_tokens import CSRFTokenRepository
from shared.services.credential_vault import CredentialVault
from shared.state_token import StateTokenCodec
from tests.helpers.table_helpers import FakeTableClient

TEST_CONNECTION_STRING = "UseDevelopmentStorage=true"
DEFAULT_API_KEY = "default-scanner-key-0000"


@pytest.fixture
def state_key():
    return bytes(range(32))


@pytest.fixture
def state_iv():
    return bytes(range(100, 116))


@pytest.fixture
def vault_key():
    return bytes(range(200, 232))


@pytest.fixture
def state_cipher(state_key, state_iv):
    return StateTokenCipher(state_key, state_iv)


@pytest.fixture
def credential_cipher(vault_key):
    return CredentialCipher(vault_key)


@pytest.fixture
def state_codec(state_cipher):
    return StateTokenCodec(state_cipher)


@pytest.fixture
def fake_table():
    """In-memory TableClient returned for every table"""
    table = FakeTableClient()
    with patch("shared.async_storage.TableClient") as mock_client_class:
        mock_client_class.from_connection_string.return_value = table
        yield table


@pytest.fixture
def clock():
    """Controllable clock: set clock.now to move time"""
    class Clock:
        now = 1_700_000_000.0

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def csrf_repo(fake_table, clock):
    return CSRFTokenRepository(TEST_CONNECTION_STRING, lifetime_seconds=3600, clock=clock)


@pytest.fixture
def credential_repo(fake_table):
    return CredentialRepository(TEST_CONNECTION_STRING)


@pytest.fixture
def default_api_key():
    return DEFAULT_API_KEY


@pytest.fixture
def credential_vault(credential_repo, credential_cipher, default_api_key):
    return CredentialVault(credential_repo, credential_cipher, default_api_key)
