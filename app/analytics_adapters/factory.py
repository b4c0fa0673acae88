"""Adapter factory.

Selects the queue and storage implementations named by ``QUEUE_TYPE`` and
``DB_TYPE`` and builds them from the nested settings.

Example:
    settings = get_settings()
    queue = create_queue_adapter(settings)
    storage = create_storage_adapter(settings)
"""

from typing import Any, Callable, Dict, Optional

from analytics_adapters.configuration.settings import Settings
from analytics_adapters.logging.setup import get_module_logger
from analytics_adapters.queue.base import QueueAdapter
from analytics_adapters.queue.beanstalkd import BeanstalkdQueueAdapter
from analytics_adapters.queue.redis import RedisQueueAdapter
from analytics_adapters.queue.sqs import SqsQueueAdapter
from analytics_adapters.storage.base import StorageAdapter
from analytics_adapters.storage.clickhouse import ClickHouseStorageAdapter
from analytics_adapters.storage.dynamodb import DynamoDBStorageAdapter
from analytics_adapters.storage.mongodb import MongoDBStorageAdapter

logger = get_module_logger()

QUEUE_ADAPTERS: Dict[str, Callable[[Settings, Any], QueueAdapter]] = {
    "SQS": lambda settings, log: SqsQueueAdapter(settings.sqs, log=log),
    "BEANSTALKD": lambda settings, log: BeanstalkdQueueAdapter(
        settings.beanstalkd, log=log
    ),
    "REDIS": lambda settings, log: RedisQueueAdapter(settings.redis, log=log),
}

STORAGE_ADAPTERS: Dict[str, Callable[[Settings, Any], StorageAdapter]] = {
    "DYNAMODB": lambda settings, log: DynamoDBStorageAdapter(settings.dynamodb, log=log),
    "MONGODB": lambda settings, log: MongoDBStorageAdapter(settings.mongodb, log=log),
    "CLICKHOUSE": lambda settings, log: ClickHouseStorageAdapter(
        settings.clickhouse, log=log
    ),
}


def create_queue_adapter(settings: Settings, log: Optional[Any] = None) -> QueueAdapter:
    """Build the queue adapter named by ``settings.QUEUE_TYPE``.

    Raises:
        ValueError: If the queue type is not supported
    """
    queue_type = settings.QUEUE_TYPE.upper()
    builder = QUEUE_ADAPTERS.get(queue_type)
    if builder is None:
        raise ValueError(f"Unsupported QUEUE_TYPE: {settings.QUEUE_TYPE}")
    logger.info("creating_queue_adapter", queue_type=queue_type)
    return builder(settings, log)


def create_storage_adapter(
    settings: Settings, log: Optional[Any] = None
) -> StorageAdapter:
    """Build the storage adapter named by ``settings.DB_TYPE``.

    Raises:
        ValueError: If the storage type is not supported
    """
    db_type = settings.DB_TYPE.upper()
    builder = STORAGE_ADAPTERS.get(db_type)
    if builder is None:
        raise ValueError(f"Unsupported DB_TYPE: {settings.DB_TYPE}")
    logger.info("creating_storage_adapter", db_type=db_type)
    return builder(settings, log)
