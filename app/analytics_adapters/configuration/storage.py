"""Storage adapter settings."""

from typing import Optional

from pydantic import Field

from analytics_adapters.configuration.base import AdapterSettings


class DynamoDBSettings(AdapterSettings):
    """DynamoDB storage adapter settings.

    Environment Variables:
        AWS_REGION: AWS region of the tables
        DYNAMODB_ENDPOINT: Endpoint override (DynamoDB Local, LocalStack)
        DYNAMODB_MAX_ATTEMPTS: botocore retry attempts (default: 5)
    """

    aws_region: Optional[str] = Field(default=None, alias="AWS_REGION")
    endpoint_url: Optional[str] = Field(default=None, alias="DYNAMODB_ENDPOINT")
    max_attempts: int = Field(default=5, ge=1, alias="DYNAMODB_MAX_ATTEMPTS")


class MongoDBSettings(AdapterSettings):
    """MongoDB storage adapter settings.

    Environment Variables:
        MONGODB_URI: Connection string (default: mongodb://localhost)
        MONGODB_DATABASE: Database holding the collections
    """

    uri: str = Field(default="mongodb://localhost", alias="MONGODB_URI")
    database: str = Field(default="analytics", alias="MONGODB_DATABASE")


class ClickHouseSettings(AdapterSettings):
    """ClickHouse storage adapter settings.

    Environment Variables:
        CLICKHOUSE_URL: HTTP interface DSN (default: http://localhost:8123)
    """

    url: str = Field(default="http://localhost:8123", alias="CLICKHOUSE_URL")
