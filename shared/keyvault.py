"""
Azure Key Vault client wrapper for reading application secrets.

All methods are async and must be called with await.
"""

import logging

from azure.core.exceptions import HttpResponseError, ResourceNotFoundError
from azure.identity.aio import DefaultAzureCredential
from azure.keyvault.secrets.aio import SecretClient

from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class KeyVaultClient:
    """
    Async reader for Azure Key Vault secrets.

    Uses DefaultAzureCredential for automatic authentication.
    """

    def __init__(self, vault_url: str | None):
        """
        Initialize the Key Vault client.

        Args:
            vault_url: Azure Key Vault URL (e.g., https://my-vault.vault.azure.net/)

        Raises:
            ConfigurationError: If no vault URL is configured
        """
        if not vault_url:
            raise ConfigurationError(
                "AZURE_KEY_VAULT_URL environment variable is required",
                setting="key_vault_url"
            )

        self.vault_url = vault_url
        self._credential = DefaultAzureCredential()
        self._client = SecretClient(vault_url=vault_url, credential=self._credential)
        logger.info(f"Key Vault client initialized for {vault_url}")

    async def get_secret(self, name: str) -> str:
        """
        Get a secret value from Key Vault by name.

        Args:
            name: Secret name (e.g., "slack-client-secret")

        Returns:
            Secret value as string

        Raises:
            ConfigurationError: If the secret doesn't exist or has no value
            HttpResponseError: If permission denied
        """
        try:
            secret = await self._client.get_secret(name)
        except ResourceNotFoundError:
            raise ConfigurationError(f"Secret not found: {name}", setting=name) from None
        except HttpResponseError as e:
            if e.status_code == 403:
                raise HttpResponseError(
                    f"Permission denied reading secret '{name}' from Key Vault"
                ) from e
            raise

        if secret.value is None:
            raise ConfigurationError(f"Secret has no value: {name}", setting=name)

        logger.info(f"Retrieved secret: {name}")
        return secret.value

    async def close(self):
        """Close the Key Vault client and release resources."""
        await self._client.close()
        await self._credential.close()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
