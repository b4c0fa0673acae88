"""Adapter configuration settings - main aggregator."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from analytics_adapters.configuration.queue import (
    BeanstalkdSettings,
    RedisQueueSettings,
    SqsSettings,
)
from analytics_adapters.configuration.storage import (
    ClickHouseSettings,
    DynamoDBSettings,
    MongoDBSettings,
)


class Settings(BaseSettings):
    """Adapter configuration settings - main aggregator.

    Aggregates the per-backend settings into a single configuration object,
    validated once at startup and passed explicitly to adapter constructors.

    Environment Variables:
        QUEUE_TYPE: Queue backend - SQS, BEANSTALKD or REDIS (default: SQS)
        DB_TYPE: Storage backend - DYNAMODB, MONGODB or CLICKHOUSE (default: DYNAMODB)
        LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        ENVIRONMENT: Deployment environment name (default: development)

    Example:
        ```python
        from analytics_adapters.configuration import get_settings
        from analytics_adapters.factory import create_queue_adapter

        settings = get_settings()
        queue = create_queue_adapter(settings)
        ```
    """

    QUEUE_TYPE: str = "SQS"
    DB_TYPE: str = "DYNAMODB"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # Queue settings
    sqs: SqsSettings = Field(default_factory=SqsSettings)
    beanstalkd: BeanstalkdSettings = Field(default_factory=BeanstalkdSettings)
    redis: RedisQueueSettings = Field(default_factory=RedisQueueSettings)

    # Storage settings
    dynamodb: DynamoDBSettings = Field(default_factory=DynamoDBSettings)
    mongodb: MongoDBSettings = Field(default_factory=MongoDBSettings)
    clickhouse: ClickHouseSettings = Field(default_factory=ClickHouseSettings)

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment once."""
    return Settings()
