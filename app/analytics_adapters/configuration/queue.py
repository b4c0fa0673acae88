"""Queue adapter settings."""

from typing import Optional

from pydantic import Field

from analytics_adapters.configuration.base import AdapterSettings

UNDEFINED_MARKERS = frozenset({"", "undefined", "None", "null"})


class SqsSettings(AdapterSettings):
    """SQS queue adapter settings.

    Environment Variables:
        AWS_REGION: Default AWS region
        QUEUE_REGION: Region of the queue, overrides AWS_REGION for SQS
        SQS_QUEUE_URL: URL of the queue to send to / receive from
        SQS_ENDPOINT: Endpoint override (LocalStack, ElasticMQ)
        SQS_MAX_MESSAGES: Messages per receive call (default: 10)
        SQS_WAIT_TIME: Long-poll wait in seconds (default: 20)
        SQS_MAX_SOCKETS: Connection pool size; unset keeps botocore's default
            pool and disables socket diagnostics
        SQS_SKIP_QUEUE_EXISTS_CHECK: Trust that the queue exists (default: False)

    Example:
        ```python
        from analytics_adapters.configuration import get_settings

        sqs = get_settings().sqs
        if sqs.queue_url_defined:
            ...
        ```
    """

    aws_region: Optional[str] = Field(default=None, alias="AWS_REGION")
    queue_region: Optional[str] = Field(default=None, alias="QUEUE_REGION")
    queue_url: Optional[str] = Field(default=None, alias="SQS_QUEUE_URL")
    endpoint_url: Optional[str] = Field(default=None, alias="SQS_ENDPOINT")
    max_messages: int = Field(default=10, ge=1, le=10, alias="SQS_MAX_MESSAGES")
    wait_time_seconds: int = Field(default=20, ge=0, le=20, alias="SQS_WAIT_TIME")
    max_sockets: Optional[int] = Field(default=None, ge=1, alias="SQS_MAX_SOCKETS")
    skip_queue_exists_check: bool = Field(
        default=False, alias="SQS_SKIP_QUEUE_EXISTS_CHECK"
    )

    @property
    def region(self) -> Optional[str]:
        """QUEUE_REGION when set, AWS_REGION otherwise."""
        for candidate in (self.queue_region, self.aws_region):
            if candidate and candidate not in UNDEFINED_MARKERS:
                return candidate
        return None

    @property
    def queue_url_defined(self) -> bool:
        return self.queue_url is not None and self.queue_url not in UNDEFINED_MARKERS


class BeanstalkdSettings(AdapterSettings):
    """Beanstalkd queue adapter settings.

    Environment Variables:
        BEANSTALKD_HOST: Server host (default: 127.0.0.1)
        BEANSTALKD_PORT: Server port (default: 11300)
        BEANSTALKD_TUBE: Tube to use and watch (default: default)
        BEANSTALKD_RESERVE_TIMEOUT: Seconds to wait for a job (default: 1)
    """

    host: str = Field(default="127.0.0.1", alias="BEANSTALKD_HOST")
    port: int = Field(default=11300, alias="BEANSTALKD_PORT")
    tube: str = Field(default="default", alias="BEANSTALKD_TUBE")
    reserve_timeout: int = Field(default=1, ge=0, alias="BEANSTALKD_RESERVE_TIMEOUT")


class RedisQueueSettings(AdapterSettings):
    """Redis task queue settings.

    Environment Variables:
        REDIS_URL: Redis connection URL (default: redis://localhost:6379/0)
        REDIS_QUEUE_NAME: List key holding queued task ids
        REDIS_TASK_KEY_PREFIX: Prefix of task record keys
        REDIS_TASK_TTL_SECONDS: Task record TTL (default: 86400)
        REDIS_DEQUEUE_TIMEOUT: Blocking pop timeout, 0 for non-blocking
    """

    url: str = Field(default="redis://localhost:6379/0", alias="REDIS_URL")
    queue_name: str = Field(default="analytics.queue", alias="REDIS_QUEUE_NAME")
    task_key_prefix: str = Field(default="task", alias="REDIS_TASK_KEY_PREFIX")
    ttl_seconds: int = Field(default=60 * 60 * 24, ge=1, alias="REDIS_TASK_TTL_SECONDS")
    dequeue_timeout: int = Field(default=0, ge=0, alias="REDIS_DEQUEUE_TIMEOUT")
