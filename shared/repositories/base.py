"""
Base Repository
Provides common per-key operations for all repositories
"""

import logging
from datetime import datetime

from shared.async_storage import AsyncTableStorageService

logger = logging.getLogger(__name__)


class BaseRepository:
    """
    Base repository with common CRUD patterns

    This class abstracts AsyncTableStorageService so repositories only
    deal in their own models and keys.
    """

    def __init__(self, table_name: str, connection_string: str | None):
        """
        Initialize repository

        Args:
            table_name: Name of the Azure Table to work with
            connection_string: Azure Storage connection string
        """
        self.table_name = table_name
        self._service = AsyncTableStorageService(table_name, connection_string)

        logger.debug(f"Initialized {self.__class__.__name__} for table: {table_name}")

    async def get_by_id(self, partition_key: str, row_key: str) -> dict | None:
        """
        Get a single entity by partition and row key

        Returns:
            Entity dictionary or None if not found
        """
        return await self._service.get_entity(partition_key, row_key)

    async def insert(self, entity: dict) -> dict:
        """
        Insert a new entity

        Raises:
            ResourceExistsError: If entity already exists
        """
        return await self._service.insert_entity(entity)

    async def upsert(self, entity: dict, mode: str = "replace") -> dict:
        """Insert or replace an entity"""
        return await self._service.upsert_entity(entity, mode=mode)

    async def update_with_etag(self, entity: dict) -> dict:
        """
        Merge changes into an entity only if nobody else changed it since it was read

        Raises:
            ResourceModifiedError: If the ETag no longer matches
            ResourceNotFoundError: If the entity was deleted
        """
        return await self._service.update_entity_with_etag(entity, mode="merge")

    async def delete(self, partition_key: str, row_key: str) -> None:
        await self._service.delete_entity(partition_key, row_key)

    @staticmethod
    def _parse_datetime(value: str | datetime | None, default: datetime | None = None) -> datetime | None:
        """
        Safely parse datetime from entity field

        Azure Table Storage may return datetime fields as datetime objects,
        ISO format strings, or not at all.
        """
        if value is None:
            return default

        if isinstance(value, datetime):
            return value

        if isinstance(value, str):
            try:
                return datetime.fromisoformat(value)
            except (ValueError, TypeError) as e:
                logger.warning(f"Failed to parse datetime from string '{value}': {e}")
                return default

        logger.warning(f"Unexpected datetime type: {type(value)} for value {value}")
        return default
