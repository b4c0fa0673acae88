"""Beanstalkd queue adapter.

Thin pass-through over a greenstalk connection: events are put as JSON jobs,
reserved one at a time and deleted by job id. greenstalk is blocking and a
connection carries one request at a time, so calls run in a worker thread
under a lock.
"""

import asyncio
import json
from typing import Any, List, Mapping, Optional, Sequence

import greenstalk

from analytics_adapters.configuration.queue import BeanstalkdSettings
from analytics_adapters.logging.setup import get_module_logger
from analytics_adapters.operations.classifiers import to_operation_result
from analytics_adapters.operations.result import OperationResult
from analytics_adapters.queue.base import MessageRef, ack_token_of
from analytics_adapters.queue.batch import acknowledge_each
from analytics_adapters.queue.models import QueueMessage, decode_payloads

logger = get_module_logger()

SERVICE = "beanstalkd"


def _job_id(message: MessageRef) -> str:
    return ack_token_of(message, key="id")


class BeanstalkdQueueAdapter:
    """Queue adapter backed by a Beanstalkd tube.

    Args:
        settings: Beanstalkd connection settings
        client: Pre-built greenstalk client; connected lazily when omitted
        log: Logger to use
    """

    def __init__(
        self,
        settings: BeanstalkdSettings,
        *,
        client: Optional[Any] = None,
        log: Optional[Any] = None,
    ) -> None:
        self.settings = settings
        self._client = client
        self._lock = asyncio.Lock()
        self._logger = (log or logger).bind(service=SERVICE, tube=settings.tube)

    def _connection(self) -> Any:
        if self._client is None:
            self._logger.info(
                "beanstalkd_connecting", host=self.settings.host, port=self.settings.port
            )
            self._client = greenstalk.Client(
                (self.settings.host, self.settings.port),
                use=self.settings.tube,
                watch=self.settings.tube,
            )
        return self._client

    async def _call(self, method: str, *args, **kwargs) -> Any:
        async with self._lock:
            return await asyncio.to_thread(
                lambda: getattr(self._connection(), method)(*args, **kwargs)
            )

    async def enqueue(self, event: Mapping[str, Any]) -> OperationResult:
        try:
            job_id = await self._call("put", json.dumps(event, default=str))
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)
        self._logger.debug("beanstalkd_job_put", job_id=job_id)
        return OperationResult.success(data={"id": job_id}, message="Job put")

    async def dequeue(self) -> OperationResult:
        """Reserve one job; an empty list when none arrives before the timeout."""
        try:
            job = await self._call("reserve", timeout=self.settings.reserve_timeout)
        except greenstalk.TimedOutError:
            return OperationResult.success(data=[], message="No jobs ready")
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)

        message = QueueMessage(
            message_id=str(job.id),
            body=job.body,
            ack_token=str(job.id),
            raw={"id": job.id, "body": job.body},
        )
        return OperationResult.success(data=[message], message="Reserved 1 job")

    async def acknowledge(self, message: MessageRef) -> OperationResult:
        try:
            job_id = _job_id(message)
            await self._call("delete", int(job_id))
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)
        return OperationResult.success(data={"id": job_id}, message="Job deleted")

    async def batch_acknowledge(self, messages: Sequence[MessageRef]) -> OperationResult:
        result = await acknowledge_each(messages, self.acknowledge, token_of=_job_id)
        return OperationResult.batch(result)

    def extract_payloads(self, messages: Sequence[QueueMessage]) -> List[Any]:
        return decode_payloads(messages)

    async def close(self) -> None:
        if self._client is not None:
            async with self._lock:
                await asyncio.to_thread(self._client.close)
            self._client = None
