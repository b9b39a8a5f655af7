"""
Async Table Storage Service for the Scan Bridge
Provides async wrappers around Azure Table Storage per-key operations
"""

import logging
from datetime import datetime

from azure.core import MatchConditions
from azure.core.exceptions import ResourceExistsError, ResourceModifiedError, ResourceNotFoundError
from azure.data.tables import UpdateMode
from azure.data.tables.aio import TableClient

from shared.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class AsyncTableStorageService:
    """
    Async Azure Table Storage operations
    Every operation addresses a single entity by PartitionKey and RowKey
    """

    def __init__(self, table_name: str, connection_string: str | None):
        """
        Initialize Async Table Storage client

        Args:
            table_name: Name of the table to work with
            connection_string: Azure Storage connection string
        """
        if not connection_string:
            raise ConfigurationError(
                "AzureWebJobsStorage environment variable not set",
                setting="storage_connection_string"
            )

        self.table_name = table_name
        self.connection_string = connection_string
        self._client: TableClient | None = None

        logger.debug(f"AsyncTableStorageService initialized for table: {table_name}")

    @property
    def table_client(self) -> TableClient:
        """Get or create the TableClient instance."""
        if self._client is None:
            self._client = TableClient.from_connection_string(
                self.connection_string, self.table_name
            )
        return self._client

    async def insert_entity(self, entity: dict) -> dict:
        """
        Insert a new entity into the table

        Args:
            entity: Entity dictionary with PartitionKey and RowKey

        Returns:
            The inserted entity

        Raises:
            ResourceExistsError: If entity already exists
            ValueError: If PartitionKey or RowKey is missing
        """
        self._check_keys(entity)
        entity = self._serialize_datetime_fields(entity)

        try:
            await self.table_client.create_entity(entity)
        except ResourceExistsError:
            logger.error(
                f"Entity already exists: {self.table_name} "
                f"PK={entity['PartitionKey']} RK={entity['RowKey']}"
            )
            raise

        logger.info(
            f"Inserted entity: {self.table_name} "
            f"PK={entity['PartitionKey']} RK={entity['RowKey']}"
        )
        return entity

    async def upsert_entity(self, entity: dict, mode: str = "replace") -> dict:
        """
        Insert or update an entity (creates if doesn't exist)

        Args:
            entity: Entity dictionary with PartitionKey and RowKey
            mode: Update mode - "replace" (default) or "merge"

        Returns:
            The upserted entity
        """
        self._check_keys(entity)
        entity = self._serialize_datetime_fields(entity)

        update_mode = UpdateMode.MERGE if mode == "merge" else UpdateMode.REPLACE
        await self.table_client.upsert_entity(entity, mode=update_mode)

        logger.info(
            f"Upserted entity ({mode}): {self.table_name} "
            f"PK={entity['PartitionKey']} RK={entity['RowKey']}"
        )
        return entity

    async def get_entity(self, partition_key: str, row_key: str) -> dict | None:
        """
        Retrieve a single entity by partition and row key

        Args:
            partition_key: The partition key
            row_key: The row key

        Returns:
            Entity dictionary or None if not found (includes 'etag' metadata for optimistic concurrency)
        """
        try:
            entity = await self.table_client.get_entity(
                partition_key=partition_key, row_key=row_key
            )
        except ResourceNotFoundError:
            logger.debug(
                f"Entity not found: {self.table_name} PK={partition_key} RK={row_key}"
            )
            return None

        entity_dict = dict(entity)
        if hasattr(entity, 'metadata') and 'etag' in entity.metadata:
            entity_dict['etag'] = entity.metadata['etag']

        logger.debug(f"Retrieved entity: {self.table_name} PK={partition_key} RK={row_key}")
        return self._deserialize_datetime_fields(entity_dict)

    async def update_entity_with_etag(self, entity: dict, mode: str = "merge") -> dict:
        """
        Update an existing entity with optimistic concurrency control using ETag.

        Args:
            entity: Entity dictionary with RowKey and 'etag' field (from get_entity)
            mode: Update mode - "merge" (default) or "replace"

        Returns:
            The updated entity

        Raises:
            ValueError: If entity doesn't have 'etag' field
            ResourceModifiedError: If entity was modified since read (ETag mismatch)
            ResourceNotFoundError: If entity doesn't exist
        """
        self._check_keys(entity)

        if "etag" not in entity:
            raise ValueError("Entity must have 'etag' field for optimistic concurrency. Use get_entity() first.")

        entity = dict(entity)
        etag = entity.pop("etag")
        entity = self._serialize_datetime_fields(entity)

        update_mode = UpdateMode.MERGE if mode == "merge" else UpdateMode.REPLACE
        try:
            await self.table_client.update_entity(
                entity, mode=update_mode, etag=etag, match_condition=MatchConditions.IfNotModified
            )
        except ResourceModifiedError:
            logger.warning(
                f"Entity was modified by another process (ETag mismatch): {self.table_name} "
                f"PK={entity['PartitionKey']} RK={entity['RowKey']}"
            )
            raise
        except ResourceNotFoundError:
            logger.warning(
                f"Entity not found for update: {self.table_name} "
                f"PK={entity['PartitionKey']} RK={entity['RowKey']}"
            )
            raise

        logger.info(
            f"Updated entity with ETag ({mode}): {self.table_name} "
            f"PK={entity['PartitionKey']} RK={entity['RowKey']}"
        )
        return entity

    async def delete_entity(self, partition_key: str, row_key: str) -> None:
        """
        Delete an entity

        Table Storage treats deleting a missing entity as success.

        Args:
            partition_key: The partition key
            row_key: The row key
        """
        await self.table_client.delete_entity(partition_key=partition_key, row_key=row_key)
        logger.info(f"Deleted entity: {self.table_name} PK={partition_key} RK={row_key}")

    @staticmethod
    def _check_keys(entity: dict) -> None:
        if "PartitionKey" not in entity or "RowKey" not in entity:
            raise ValueError("Entity must have PartitionKey and RowKey")

    # Datetime serialization helpers

    def _serialize_datetime_fields(self, entity: dict) -> dict:
        """Convert datetime objects to ISO format strings for storage"""
        result = {}
        for key, value in entity.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
            else:
                result[key] = value
        return result

    def _deserialize_datetime_fields(self, entity: dict) -> dict:
        """Convert ISO format strings back to datetime objects"""
        datetime_fields = ["UpdatedAt", "Timestamp"]

        result = {}
        for key, value in entity.items():
            if key in datetime_fields and isinstance(value, str):
                try:
                    result[key] = datetime.fromisoformat(value.replace("Z", "+00:00"))
                except (ValueError, AttributeError):
                    result[key] = value
            else:
                result[key] = value

        return result

