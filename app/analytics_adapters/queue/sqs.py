"""SQS queue adapter.

Sends and receives analytics events through an SQS queue. The queue is
verified (and created when missing) on first use, batch acknowledgments are
split into 10-entry `DeleteMessageBatch` calls, and slow sends and receives
are logged with a snapshot of the client's connection pool.

Every operation returns an `OperationResult`. A missing `SQS_QUEUE_URL` yields
a CONFIGURATION_ERROR result without any network call.
"""

import asyncio
import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from urllib.parse import urlparse

from analytics_adapters.clients.aws.pool import SocketPoolDiagnostics
from analytics_adapters.clients.aws.session_provider import SessionProvider
from analytics_adapters.configuration.queue import SqsSettings
from analytics_adapters.logging.setup import get_module_logger
from analytics_adapters.operations.classifiers import to_operation_result
from analytics_adapters.operations.result import OperationResult
from analytics_adapters.queue.base import MessageRef, ack_token_of
from analytics_adapters.queue.batch import BATCH_SIZE, BatchDeleteCoordinator
from analytics_adapters.queue.existence import QueueExistenceCache
from analytics_adapters.queue.latency import LatencyGuard, guarded
from analytics_adapters.queue.models import QueueMessage, decode_payloads

logger = get_module_logger()

SERVICE = "sqs"
QUEUE_URL_SETTING = "SQS_QUEUE_URL"


def queue_name_from_url(queue_url: str) -> str:
    """Return the queue name, the last path segment of a queue URL."""
    return urlparse(queue_url).path.rstrip("/").rsplit("/", 1)[-1]


def build_message_attributes(event: Mapping[str, Any]) -> Dict[str, Dict[str, str]]:
    """Build the ``Event`` and ``Time`` message attributes for an event."""
    attributes: Dict[str, Dict[str, str]] = {}
    if event.get("event") is not None:
        attributes["Event"] = {"DataType": "String", "StringValue": str(event["event"])}
    timestamp = event.get("timestamp")
    attributes["Time"] = {
        "DataType": "String",
        "StringValue": (
            str(timestamp) if timestamp else datetime.now(timezone.utc).isoformat()
        ),
    }
    return attributes


class SqsQueueAdapter:
    """Queue adapter backed by Amazon SQS.

    Args:
        settings: SQS settings (queue URL, region, pool size, ...)
        client: Pre-built boto3 SQS client; built from settings when omitted
        log: Logger to use, defaults to the module logger
    """

    def __init__(
        self,
        settings: SqsSettings,
        *,
        client: Optional[Any] = None,
        log: Optional[Any] = None,
    ) -> None:
        self.settings = settings
        self._logger = (log or logger).bind(service=SERVICE)

        if client is None:
            provider = SessionProvider(
                region=settings.region,
                endpoint_url=settings.endpoint_url,
                max_pool_connections=settings.max_sockets,
            )
            client = provider.get_boto3_client("sqs")
        self.client = client

        self._logger.info(
            "sqs_adapter_initialized",
            region=settings.region,
            queue_url=settings.queue_url,
            max_sockets=settings.max_sockets,
        )

        self.socket_diagnostics = SocketPoolDiagnostics.for_client(
            client, settings.max_sockets, settings.endpoint_url
        )
        self.latency_guard = LatencyGuard(self.socket_diagnostics, log=self._logger)
        self.existence = QueueExistenceCache(
            skip_check=settings.skip_queue_exists_check, log=self._logger
        )
        self.batch_deleter = BatchDeleteCoordinator(
            self._delete_message_batch,
            batch_size=BATCH_SIZE,
            service=SERVICE,
            log=self._logger,
        )

    @property
    def queue_url(self) -> Optional[str]:
        return self.settings.queue_url

    @property
    def queue_exists(self) -> bool:
        return self.existence.exists

    async def enqueue(self, event: Mapping[str, Any]) -> OperationResult:
        """Send one event as a JSON message."""
        if not self.settings.queue_url_defined:
            return OperationResult.undefined(QUEUE_URL_SETTING)
        params = {
            "QueueUrl": self.queue_url,
            "MessageBody": json.dumps(event, default=str),
            "MessageAttributes": build_message_attributes(event),
        }
        try:
            await self._ensure_queue()
            response = await self._send_message(params)
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)
        self._logger.debug("sqs_message_sent", message_id=response.get("MessageId"))
        return OperationResult.success(data=response, message="Message sent")

    async def dequeue(self) -> OperationResult:
        """Receive up to ``max_messages`` messages, long-polling."""
        if not self.settings.queue_url_defined:
            return OperationResult.undefined(QUEUE_URL_SETTING)
        params = {
            "QueueUrl": self.queue_url,
            "MaxNumberOfMessages": self.settings.max_messages,
            "WaitTimeSeconds": self.settings.wait_time_seconds,
            "MessageAttributeNames": ["All"],
        }
        try:
            await self._ensure_queue()
            response = await self.latency_guard.run(
                "receive_message",
                lambda: asyncio.to_thread(self.client.receive_message, **params),
                allowance_ms=self.settings.wait_time_seconds * 1000,
            )
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)

        messages = [QueueMessage.from_sqs(m) for m in response.get("Messages") or []]
        self._logger.debug("sqs_messages_received", count=len(messages))
        return OperationResult.success(
            data=messages, message=f"Received {len(messages)} messages"
        )

    async def acknowledge(self, message: MessageRef) -> OperationResult:
        if not self.settings.queue_url_defined:
            return OperationResult.undefined(QUEUE_URL_SETTING)
        try:
            response = await asyncio.to_thread(
                self.client.delete_message,
                QueueUrl=self.queue_url,
                ReceiptHandle=ack_token_of(message),
            )
        except Exception as exc:  # pylint: disable=broad-except
            return to_operation_result(exc, service=SERVICE, log=self._logger)
        return OperationResult.success(data=response, message="Message deleted")

    async def batch_acknowledge(self, messages: Sequence[MessageRef]) -> OperationResult:
        """Delete messages in batches of ten.

        Per-message failures are reported in the `BatchDeleteResult` carried as
        ``data``; the operation itself succeeds once every batch was attempted.
        """
        if not self.settings.queue_url_defined:
            return OperationResult.undefined(QUEUE_URL_SETTING)
        result = await self.batch_deleter.run(messages)
        return OperationResult.batch(result)

    def extract_payloads(self, messages: Sequence[QueueMessage]) -> List[Any]:
        return decode_payloads(messages)

    @guarded("send_message")
    async def _send_message(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(self.client.send_message, **params)

    async def _delete_message_batch(
        self, entries: List[Dict[str, str]]
    ) -> Dict[str, Any]:
        return await asyncio.to_thread(
            self.client.delete_message_batch, QueueUrl=self.queue_url, Entries=entries
        )

    async def _ensure_queue(self) -> None:
        await self.existence.ensure(self._queue_listed, self._create_queue)

    async def _queue_listed(self) -> bool:
        queue_urls = await asyncio.to_thread(self._list_queue_urls)
        return self.queue_url in queue_urls

    def _list_queue_urls(self) -> List[str]:
        paginator = self.client.get_paginator("list_queues")
        queue_urls: List[str] = []
        for page in paginator.paginate():
            queue_urls.extend(page.get("QueueUrls", []))
        return queue_urls

    async def _create_queue(self) -> None:
        response = await asyncio.to_thread(
            self.client.create_queue, QueueName=queue_name_from_url(self.queue_url)
        )
        self._logger.info(
            "sqs_queue_created",
            created_url=response.get("QueueUrl"),
            expected_url=self.queue_url,
        )
