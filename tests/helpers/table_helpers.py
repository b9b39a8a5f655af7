"""
In-memory stand-in for azure.data.tables.aio.TableClient.

Implements the per-key operations the app uses, including ETag checks on
update, so repository behaviour can be exercised without Azurite.
"""

import asyncio

from azure.core.exceptions import (
    ResourceExistsError,
    ResourceModifiedError,
    ResourceNotFoundError,
)
from azure.data.tables import UpdateMode


class FakeTableEntity(dict):
    def __init__(self, data: dict, etag: str):
        super().__init__(data)
        self.metadata = {"etag": etag}


class FakeTableClient:
    def __init__(self, yield_on_read: bool = False):
        self.rows: dict[tuple[str, str], tuple[dict, str]] = {}
        self.yield_on_read = yield_on_read
        self._version = 0

    def _next_etag(self) -> str:
        self._version += 1
        return f'W/"datetime\'{self._version}\'"'

    @staticmethod
    def _key(entity: dict) -> tuple[str, str]:
        return entity["PartitionKey"], entity["RowKey"]

    async def create_entity(self, entity: dict):
        key = self._key(entity)
        if key in self.rows:
            raise ResourceExistsError("The specified entity already exists.")
        self.rows[key] = (dict(entity), self._next_etag())

    async def upsert_entity(self, entity: dict, mode=UpdateMode.MERGE):
        key = self._key(entity)
        current = self.rows.get(key, ({}, None))[0]
        data = {**current, **entity} if mode == UpdateMode.MERGE else dict(entity)
        self.rows[key] = (data, self._next_etag())

    async def get_entity(self, partition_key: str, row_key: str):
        key = (partition_key, row_key)
        if key not in self.rows:
            raise ResourceNotFoundError("The specified resource does not exist.")
        data, etag = self.rows[key]
        entity = FakeTableEntity(data, etag)
        if self.yield_on_read:
            # Let a concurrent caller read the same version
            await asyncio.sleep(0)
        return entity

    async def update_entity(self, entity: dict, mode=UpdateMode.MERGE, etag=None, match_condition=None):
        key = self._key(entity)
        if key not in self.rows:
            raise ResourceNotFoundError("The specified resource does not exist.")
        current, current_etag = self.rows[key]
        if etag is not None and etag != current_etag:
            raise ResourceModifiedError("The update condition specified in the request was not satisfied.")
        data = {**current, **entity} if mode == UpdateMode.MERGE else dict(entity)
        self.rows[key] = (data, self._next_etag())

    async def delete_entity(self, partition_key: str, row_key: str, **kwargs):
        # Table Storage treats deleting a missing entity as success
        self.rows.pop((partition_key, row_key), None)

    async def close(self):
        pass

    def row(self, partition_key: str, row_key: str) -> dict | None:
        entry = self.rows.get((partition_key, row_key))
        return entry[0] if entry else None
