"""Batch acknowledgment.

`BatchDeleteCoordinator` splits acknowledgment tokens into provider-sized
batches, submits the batches concurrently, and merges the per-entry outcomes
into one `BatchDeleteResult`. Each token's entry id is its position in the
input, so outcomes correlate back to tokens exactly. One batch failing never
fails its siblings.

`acknowledge_each` is the fallback for providers without a batch API: one
acknowledgment per message, in order.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

import structlog

from analytics_adapters.operations.classifiers import describe_error
from analytics_adapters.operations.result import OperationResult
from analytics_adapters.queue.base import (
    INVALID_MESSAGE_CODE,
    InvalidMessageError,
    ack_token_of,
)
from analytics_adapters.queue.models import (
    BatchDeleteFailure,
    BatchDeleteResult,
    BatchDeleteSuccess,
)

logger = structlog.get_logger()

BATCH_SIZE = 10

BATCH_ERROR_CODE = "BatchError"
MISSING_RESULT_CODE = "MissingResult"

DeleteBatch = Callable[[List[Dict[str, str]]], Awaitable[Mapping[str, Any]]]


class BatchDeleteCoordinator:
    """Fan out batch deletes and aggregate their outcomes.

    Args:
        delete_batch: Async callable taking ``[{"Id", "ReceiptHandle"}, ...]``
            and returning a provider response with ``Successful`` and
            ``Failed`` entry lists
        batch_size: Maximum entries per provider call
        service: Service name for error logs
        log: Logger to use
    """

    def __init__(
        self,
        delete_batch: DeleteBatch,
        batch_size: int = BATCH_SIZE,
        service: str = "sqs",
        log: Optional[Any] = None,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self._delete_batch = delete_batch
        self.batch_size = batch_size
        self.service = service
        self._logger = log or logger

    async def run(
        self,
        messages: Sequence[Any],
        token_of: Callable[[Any], str] = ack_token_of,
    ) -> BatchDeleteResult:
        """Delete ``messages`` (messages, raw mappings or bare tokens).

        Messages without a token are reported failed with ``InvalidMessage``
        and never sent; the rest keep their input position as entry id.
        """
        result = BatchDeleteResult()
        if not messages:
            return result

        indexed: List[tuple[str, str]] = []
        for index, message in enumerate(messages):
            try:
                indexed.append((str(index), token_of(message)))
            except InvalidMessageError as exc:
                result.failed.append(_invalid(index, exc))
        if not indexed:
            return result

        batches = [
            indexed[start : start + self.batch_size]
            for start in range(0, len(indexed), self.batch_size)
        ]
        self._logger.info(
            "batch_delete_started", total=len(indexed), batches=len(batches)
        )
        outcomes = await asyncio.gather(*(self._run_batch(batch) for batch in batches))
        for outcome in outcomes:
            result.extend(outcome)
        result.failed.sort(key=lambda entry: int(entry.id))

        self._logger.debug(
            "batch_delete_completed",
            successful=len(result.successful),
            failed=len(result.failed),
        )
        return result

    async def _run_batch(self, batch: List[tuple[str, str]]) -> BatchDeleteResult:
        entries = [{"Id": entry_id, "ReceiptHandle": token} for entry_id, token in batch]
        try:
            response = await self._delete_batch(entries)
        except Exception as exc:  # pylint: disable=broad-except
            error = describe_error(exc, service=self.service)
            self._logger.error(
                "batch_delete_failed",
                service=self.service,
                provider_code=error.provider_code,
                error=error.message,
                entries=len(entries),
            )
            return BatchDeleteResult(
                failed=[
                    BatchDeleteFailure(
                        id=entry_id,
                        ack_token=token,
                        code=BATCH_ERROR_CODE,
                        message=error.message,
                    )
                    for entry_id, token in batch
                ]
            )
        return self._correlate(batch, response or {})

    def _correlate(
        self, batch: List[tuple[str, str]], response: Mapping[str, Any]
    ) -> BatchDeleteResult:
        tokens = dict(batch)
        outcomes: Dict[str, Any] = {}

        for entry in response.get("Successful") or []:
            entry_id = str(entry.get("Id"))
            if entry_id not in tokens:
                self._logger.warning("batch_delete_unknown_id", id=entry_id)
                continue
            outcomes.setdefault(
                entry_id, BatchDeleteSuccess(id=entry_id, ack_token=tokens[entry_id])
            )

        for entry in response.get("Failed") or []:
            entry_id = str(entry.get("Id"))
            if entry_id not in tokens:
                self._logger.warning("batch_delete_unknown_id", id=entry_id)
                continue
            outcomes.setdefault(
                entry_id,
                BatchDeleteFailure(
                    id=entry_id,
                    ack_token=tokens[entry_id],
                    code=entry.get("Code") or "Unknown",
                    message=entry.get("Message") or "",
                    sender_fault=bool(entry.get("SenderFault", False)),
                ),
            )

        result = BatchDeleteResult()
        for entry_id, token in batch:
            outcome = outcomes.get(entry_id)
            if outcome is None:
                outcome = BatchDeleteFailure(
                    id=entry_id,
                    ack_token=token,
                    code=MISSING_RESULT_CODE,
                    message="No result returned for entry",
                )
            if isinstance(outcome, BatchDeleteSuccess):
                result.successful.append(outcome)
            else:
                result.failed.append(outcome)
        return result


def _invalid(index: int, exc: InvalidMessageError) -> BatchDeleteFailure:
    return BatchDeleteFailure(
        id=str(index),
        ack_token="",
        code=INVALID_MESSAGE_CODE,
        message=str(exc),
        sender_fault=True,
    )


async def acknowledge_each(
    messages: Sequence[Any],
    acknowledge: Callable[[Any], Awaitable[OperationResult]],
    token_of: Callable[[Any], str] = ack_token_of,
) -> BatchDeleteResult:
    """Acknowledge messages one at a time and collect the outcomes."""
    result = BatchDeleteResult()
    for index, message in enumerate(messages):
        try:
            token = token_of(message)
        except InvalidMessageError as exc:
            result.failed.append(_invalid(index, exc))
            continue
        outcome = await acknowledge(message)
        if outcome.is_success:
            result.successful.append(BatchDeleteSuccess(id=str(index), ack_token=token))
        else:
            result.failed.append(
                BatchDeleteFailure(
                    id=str(index),
                    ack_token=token,
                    code=outcome.error_code or outcome.status.value,
                    message=outcome.message,
                )
            )
    return result
