"""Configuration module - public API.

Pydantic BaseSettings classes for every adapter, aggregated by `Settings`.

Example:
    ```python
    from analytics_adapters.configuration import get_settings

    settings = get_settings()
    queue_url = settings.sqs.queue_url
    ```
"""

from analytics_adapters.configuration.queue import (
    BeanstalkdSettings,
    RedisQueueSettings,
    SqsSettings,
)
from analytics_adapters.configuration.settings import Settings, get_settings
from analytics_adapters.configuration.storage import (
    ClickHouseSettings,
    DynamoDBSettings,
    MongoDBSettings,
)

__all__ = [
    "Settings",
    "get_settings",
    "SqsSettings",
    "BeanstalkdSettings",
    "RedisQueueSettings",
    "DynamoDBSettings",
    "MongoDBSettings",
    "ClickHouseSettings",
]
