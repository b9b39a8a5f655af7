"""
Credential Repository
Per-principal credential records keyed by team + user
"""

import json
import logging
from datetime import datetime

from shared.models import CredentialRecord

from .base import BaseRepository

logger = logging.getLogger(__name__)

CREDENTIALS_TABLE = "Credentials"


class CredentialRepository(BaseRepository):
    """
    Repository for credential records

    Records live in the Credentials table with PartitionKey = team id and
    RowKey = "{team_id}.{user_id}". The API key column holds ciphertext;
    this repository never sees plaintext credentials.
    """

    def __init__(self, connection_string: str | None):
        super().__init__(CREDENTIALS_TABLE, connection_string)

    async def get_record(self, team_id: str, user_id: str) -> CredentialRecord | None:
        """
        Get the record for a principal

        Returns:
            CredentialRecord or None if the principal never installed
        """
        entity = await self.get_by_id(team_id, CredentialRecord.build_key(team_id, user_id))

        if entity:
            return self._entity_to_model(entity)

        return None

    async def save_record(self, record: CredentialRecord) -> CredentialRecord:
        """
        Create or replace the record for a principal

        Returns:
            The saved record with UpdatedAt set
        """
        record = record.model_copy(update={"updated_at": datetime.utcnow()})

        entity = {
            "PartitionKey": record.team_id,
            "RowKey": record.key,
            "User": json.dumps(record.user),
            "Team": json.dumps(record.team),
            "UpdatedAt": record.updated_at,
        }
        if record.has_credential:
            entity["ApiKey"] = record.api_key
            entity["ApiKeyIV"] = record.api_key_iv

        await self.upsert(entity, mode="replace")

        logger.info(
            f"Saved credential record {record.key}",
            extra={"team_id": record.team_id, "has_credential": record.has_credential}
        )
        return record

    def _entity_to_model(self, entity: dict) -> CredentialRecord:
        """Convert entity dict to CredentialRecord"""
        team_id = entity["PartitionKey"]
        user_id = entity["RowKey"][len(team_id) + 1:]

        api_key_iv = entity.get("ApiKeyIV")
        if api_key_iv is not None:
            api_key_iv = bytes(api_key_iv)

        return CredentialRecord(
            team_id=team_id,
            user_id=user_id,
            user=json.loads(entity.get("User") or "{}"),
            team=json.loads(entity.get("Team") or "{}"),
            api_key=entity.get("ApiKey"),
            api_key_iv=api_key_iv,
            updated_at=self._parse_datetime(entity.get("UpdatedAt")),
        )
