"""Storage adapters."""

from analytics_adapters.storage.base import ItemKey, StorageAdapter
from analytics_adapters.storage.clickhouse import ClickHouseStorageAdapter
from analytics_adapters.storage.dynamodb import DynamoDBStorageAdapter
from analytics_adapters.storage.mongodb import MongoDBStorageAdapter

__all__ = [
    "ClickHouseStorageAdapter",
    "DynamoDBStorageAdapter",
    "ItemKey",
    "MongoDBStorageAdapter",
    "StorageAdapter",
]
