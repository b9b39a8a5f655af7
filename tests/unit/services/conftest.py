"""
Pytest fixtures for service tests.

Provides mocks for:
- SecretClient for Key Vault operations
- DefaultAzureCredential
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch


@pytest.fixture
def mock_secret_client():
    """Mock SecretClient for Key Vault operations"""
    with patch("shared.keyvault.SecretClient") as mock_client_class:
        mock_instance = MagicMock()
        mock_client_class.return_value = mock_instance

        # In-memory secret storage for testing
        secrets_store = {}

        async def mock_get_secret(name):
            if name not in secrets_store:
                from azure.core.exceptions import ResourceNotFoundError
                raise ResourceNotFoundError(f"Secret not found: {name}")
            secret_obj = MagicMock()
            secret_obj.name = name
            secret_obj.value = secrets_store[name]
            return secret_obj

        mock_instance.get_secret = AsyncMock(side_effect=mock_get_secret)
        mock_instance.close = AsyncMock()

        yield {
            "client_class": mock_client_class,
            "instance": mock_instance,
            "secrets_store": secrets_store,
        }


@pytest.fixture
def mock_default_credential():
    """Mock DefaultAzureCredential"""
    with patch("shared.keyvault.DefaultAzureCredential") as mock:
        mock.return_value.close = AsyncMock()
        yield mock
