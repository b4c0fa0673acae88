"""Redis-backed task queue adapter.

Each event is stored as a JSON task record under ``{prefix}:{task_id}`` with a
TTL, and its id is pushed on a list. Dequeue pops the oldest id and loads the
record; acknowledging deletes the record. Records that expired while queued
are skipped.
"""

import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from redis import Redis

from analytics_adapters.configuration.queue import RedisQueueSettings
from analytics_adapters.logging.setup import get_module_logger
from analytics_adapters.operations.classifiers import to_operation_result
from analytics_adapters.operations.result import OperationResult
from analytics_adapters.queue.base import MessageRef, ack_token_of
from analytics_adapters.queue.batch import acknowledge_each
from analytics_adapters.queue.models import QueueMessage, decode_payloads

logger = get_module_logger()

SERVICE = "redis"


def _task_id(message: MessageRef) -> str:
    return ack_token_of(message, key="task_id")


def _decode(value: Any) -> str:
    return value.decode() if isinstance(value, bytes) else str(value)


class RedisQueueAdapter:
    """Queue adapter backed by a Redis list and task records.

    Args:
        settings: Redis queue settings
        client: Pre-built redis client; built from ``settings.url`` when omitted
        log: Logger to use
    """

    def __init__(
        self,
        settings: RedisQueueSettings,
        *,
        client: Optional[Redis] = None,
        log: Optional[Any] = None,
    ) -> None:
        self.settings = settings
        self.redis = client if client is not None else Redis.from_url(settings.url)
        self.queue_name = settings.queue_name
        self.task_key_prefix = settings.task_key_prefix.rstrip(":")
        self._logger = (log or logger).bind(service=SERVICE, queue=self.queue_name)

    def _key(self, task_id: str) -> str:
        return f"{self.task_key_prefix}:{task_id}"

    def _push(self, record: Dict[str, Any]) -> None:
        task_id = record["task_id"]
        self.redis.setex(
            self._key(task_id),
            self.settings.ttl_seconds,
            json.dumps(record, ensure_ascii=False, default=str),
        )
        self.redis.lpush(self.queue_name, task_id)

    def _pop(self) -> Optional[Dict[str, Any]]:
        timeout = self.settings.dequeue_timeout
        if timeout > 0:
            popped = self.redis.brpop(self.queue_name, timeout=timeout)
            if popped is None:
                return None
            task_id = _decode(popped[1])
        else:
            value = self.redis.rpop(self.queue_name)
            if value is None:
                return None
            task_id = _decode(value)

        raw = self.redis.get(self._key(task_id))
        if not raw:
            self._logger.warning("redis_task_record_missing", task_id=task_id)
            return None
        return json.loads(raw)

    async def enqueue(self, event: Mapping[str, Any]) -> OperationResult:
        record = {
            "task_id": uuid.uuid4().hex,
            "event": dict(event),
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            await asyncio.to_thread(self._push, record)
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)
        self._logger.debug("redis_task_enqueued", task_id=record["task_id"])
        return OperationResult.success(
            data={"task_id": record["task_id"]}, message="Task enqueued"
        )

    async def dequeue(self) -> OperationResult:
        try:
            record = await asyncio.to_thread(self._pop)
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)
        if record is None:
            return OperationResult.success(data=[], message="Queue empty")

        message = QueueMessage(
            message_id=record["task_id"],
            body=json.dumps(record.get("event") or {}, default=str),
            ack_token=record["task_id"],
            raw=record,
        )
        return OperationResult.success(data=[message], message="Dequeued 1 task")

    async def acknowledge(self, message: MessageRef) -> OperationResult:
        try:
            task_id = _task_id(message)
            deleted = await asyncio.to_thread(self.redis.delete, self._key(task_id))
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)
        if not deleted:
            return OperationResult.not_found(f"Task {task_id} not found", error_code="TaskNotFound")
        return OperationResult.success(data={"task_id": task_id}, message="Task deleted")

    async def batch_acknowledge(self, messages: Sequence[MessageRef]) -> OperationResult:
        result = await acknowledge_each(messages, self.acknowledge, token_of=_task_id)
        return OperationResult.batch(result)

    def extract_payloads(self, messages: Sequence[QueueMessage]) -> List[Any]:
        return decode_payloads(messages)
