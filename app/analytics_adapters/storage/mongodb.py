"""MongoDB storage adapter.

Events are stored as documents, one collection per table. Reads never return
MongoDB's ``_id`` field.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from analytics_adapters.configuration.storage import MongoDBSettings
from analytics_adapters.logging.setup import get_module_logger
from analytics_adapters.operations.classifiers import classify_error
from analytics_adapters.operations.errors import ErrorClassification
from analytics_adapters.storage.base import SESSION_FIELD, ItemKey, classified_errors

logger = get_module_logger()

SERVICE = "mongodb"
WITHOUT_ID = {"_id": 0}


class MongoDBStorageAdapter:
    """Storage adapter backed by MongoDB collections.

    Args:
        settings: MongoDB settings
        database: Pre-built motor database; built from settings when omitted
        log: Logger to use
    """

    continue_codes = frozenset({"NamespaceNotFound", "NamespaceExists"})

    def __init__(
        self,
        settings: Optional[MongoDBSettings] = None,
        *,
        database: Optional[AsyncIOMotorDatabase] = None,
        log: Optional[Any] = None,
    ) -> None:
        self.settings = settings or MongoDBSettings()
        self._client: Optional[AsyncIOMotorClient] = None
        if database is None:
            self._client = AsyncIOMotorClient(self.settings.uri)
            database = self._client[self.settings.database]
        self.db = database
        self._logger = (log or logger).bind(service=SERVICE)

    def classify_error(self, error: Any) -> ErrorClassification:
        return classify_error(
            error,
            service=SERVICE,
            continue_codes=self.continue_codes,
            log=self._logger,
        )

    async def table_names(self) -> List[str]:
        with classified_errors(self.classify_error):
            return await self.db.list_collection_names()

    async def exists(self, name: str) -> bool:
        return name in await self.table_names()

    async def create(self, name: str) -> bool:
        if await self.exists(name):
            return True
        with classified_errors(self.classify_error):
            await self.db.create_collection(name)
        self._logger.info("mongodb_collection_created", collection=name)
        return True

    async def put(self, table: str, item: Mapping[str, Any]) -> bool:
        with classified_errors(self.classify_error):
            # insert_one adds _id to the document it is given
            result = await self.db[table].insert_one(dict(item))
        return bool(result.acknowledged)

    async def put_batch(self, table: str, items: Sequence[Mapping[str, Any]]) -> bool:
        if not items:
            return True
        with classified_errors(self.classify_error):
            result = await self.db[table].insert_many([dict(item) for item in items])
        self._logger.debug("mongodb_batch_put", collection=table, count=len(items))
        return bool(result.acknowledged)

    async def get(self, table: str, key: ItemKey) -> Dict[str, Any]:
        with classified_errors(self.classify_error):
            document = await self.db[table].find_one(key.as_filter(), WITHOUT_ID)
        return document or {}

    async def delete(self, table: str, key: ItemKey) -> bool:
        with classified_errors(self.classify_error):
            result = await self.db[table].delete_one(key.as_filter())
        return result.deleted_count > 0

    async def query_by_session(self, table: str, session_id: str) -> List[Dict[str, Any]]:
        with classified_errors(self.classify_error):
            cursor = self.db[table].find({SESSION_FIELD: session_id}, WITHOUT_ID)
            return await cursor.to_list(length=None)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
