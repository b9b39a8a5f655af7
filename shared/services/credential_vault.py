"""
Credential Vault
Encrypted per-principal scanner credentials
"""

import logging

from shared.crypto import CredentialCipher, mask_secret
from shared.models import CredentialRecord, OAuthAccessResponse
from shared.repositories.credentials import CredentialRepository

logger = logging.getLogger(__name__)


class CredentialVault:
    """
    Reads and writes credential records and resolves the scanner API key
    that applies to a request.

    Principals without a stored key fall back to the process-wide default.
    """

    def __init__(
        self,
        repository: CredentialRepository,
        cipher: CredentialCipher,
        default_api_key: str
    ):
        self._repository = repository
        self._cipher = cipher
        self._default_api_key = default_api_key

    async def store(self, exchange: OAuthAccessResponse, api_key: str | None = None) -> CredentialRecord:
        """
        Persist the record for the principal of a completed install exchange

        Args:
            exchange: Provider exchange response (team + authed user)
            api_key: Raw scanner credential supplied on install, if any

        Returns:
            The saved record
        """
        ciphertext = iv = None
        if api_key:
            ciphertext, iv = self._cipher.encrypt_text(api_key)

        record = CredentialRecord(
            team_id=exchange.team_id,
            user_id=exchange.user_id,
            user=exchange.authed_user,
            team=exchange.team,
            api_key=ciphertext,
            api_key_iv=iv,
        )

        return await self._repository.save_record(record)

    async def resolve(self, team_id: str, user_id: str) -> str:
        """
        Resolve the scanner credential for a principal

        Returns:
            The principal's decrypted key, or the default key when the
            principal has no record or no stored key

        Raises:
            CryptoError: If a stored key cannot be decrypted
        """
        record = await self._repository.get_record(team_id, user_id)

        if record is None or not record.has_credential:
            logger.info(f"Using default scanner credential for {CredentialRecord.build_key(team_id, user_id)}")
            return self._default_api_key

        api_key = self._cipher.decrypt_text(record.api_key, record.api_key_iv)
        logger.info(f"Using stored scanner credential {mask_secret(api_key)} for {record.key}")
        return api_key
