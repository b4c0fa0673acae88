"""Queue adapters and the SQS resilience components."""

from analytics_adapters.queue.base import InvalidMessageError, QueueAdapter
from analytics_adapters.queue.batch import BatchDeleteCoordinator, acknowledge_each
from analytics_adapters.queue.beanstalkd import BeanstalkdQueueAdapter
from analytics_adapters.queue.existence import QueueExistenceCache
from analytics_adapters.queue.latency import LatencyGuard, guarded
from analytics_adapters.queue.models import (
    BatchDeleteFailure,
    BatchDeleteResult,
    BatchDeleteSuccess,
    QueueMessage,
)
from analytics_adapters.queue.redis import RedisQueueAdapter
from analytics_adapters.queue.sqs import SqsQueueAdapter

__all__ = [
    "BatchDeleteCoordinator",
    "BatchDeleteFailure",
    "BatchDeleteResult",
    "BatchDeleteSuccess",
    "BeanstalkdQueueAdapter",
    "InvalidMessageError",
    "LatencyGuard",
    "QueueAdapter",
    "QueueExistenceCache",
    "QueueMessage",
    "RedisQueueAdapter",
    "SqsQueueAdapter",
    "acknowledge_each",
    "guarded",
]
