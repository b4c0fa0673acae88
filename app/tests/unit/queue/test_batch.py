"""Unit tests for batch acknowledgment."""

from unittest.mock import MagicMock

import pytest

from analytics_adapters.operations.result import OperationResult
from analytics_adapters.operations.status import OperationStatus
from analytics_adapters.queue.batch import (
    BATCH_ERROR_CODE,
    MISSING_RESULT_CODE,
    BatchDeleteCoordinator,
    acknowledge_each,
)
from analytics_adapters.queue.models import QueueMessage


class RecordingDeleter:
    """Async batch-delete stand-in recording each submitted batch."""

    def __init__(self, respond=None):
        self.batches = []
        self._respond = respond or (
            lambda entries: {"Successful": [{"Id": e["Id"]} for e in entries]}
        )

    async def __call__(self, entries):
        self.batches.append(entries)
        return self._respond(entries)


def tokens(count):
    return [f"handle-{index}" for index in range(count)]


def assert_exhaustive(result, submitted):
    reported = [entry.ack_token for entry in result.successful] + [
        entry.ack_token for entry in result.failed
    ]
    assert sorted(reported) == sorted(submitted)
    assert result.total == len(submitted)


@pytest.mark.unit
class TestBatchDeleteCoordinator:
    @pytest.mark.asyncio
    async def test_empty_input_makes_no_call(self):
        deleter = RecordingDeleter()
        result = await BatchDeleteCoordinator(deleter, log=MagicMock()).run([])

        assert deleter.batches == []
        assert result.successful == [] and result.failed == []

    @pytest.mark.asyncio
    async def test_fifteen_tokens_make_two_calls(self):
        deleter = RecordingDeleter()
        submitted = tokens(15)

        result = await BatchDeleteCoordinator(deleter, log=MagicMock()).run(submitted)

        assert [len(batch) for batch in deleter.batches] == [10, 5]
        assert [entry["Id"] for entry in deleter.batches[1]] == [
            str(i) for i in range(10, 15)
        ]
        assert len(result.successful) == 15
        assert [entry.ack_token for entry in result.successful] == submitted
        assert_exhaustive(result, submitted)

    @pytest.mark.asyncio
    async def test_partial_failure_is_reported_per_entry(self):
        def respond(entries):
            return {
                "Successful": [{"Id": e["Id"]} for e in entries if e["Id"] != "1"],
                "Failed": [
                    {
                        "Id": "1",
                        "Code": "ReceiptHandleIsInvalid",
                        "Message": "invalid handle",
                        "SenderFault": True,
                    }
                ],
            }

        submitted = tokens(3)
        result = await BatchDeleteCoordinator(
            RecordingDeleter(respond), log=MagicMock()
        ).run(submitted)

        assert [entry.id for entry in result.successful] == ["0", "2"]
        failure = result.failed[0]
        assert failure.ack_token == "handle-1"
        assert failure.code == "ReceiptHandleIsInvalid"
        assert failure.sender_fault is True
        assert result.to_dict()["failed"][0] == {
            "Id": "1",
            "Code": "ReceiptHandleIsInvalid",
            "Message": "invalid handle",
            "SenderFault": True,
        }
        assert_exhaustive(result, submitted)

    @pytest.mark.asyncio
    async def test_raising_batch_fails_only_its_tokens(self, make_client_error):
        async def delete_batch(entries):
            if entries[0]["Id"] == "0":
                raise make_client_error("ServiceUnavailable", "try later")
            return {"Successful": [{"Id": e["Id"]} for e in entries]}

        submitted = tokens(12)
        log = MagicMock()
        result = await BatchDeleteCoordinator(delete_batch, log=log).run(submitted)

        assert len(result.failed) == 10
        assert {entry.code for entry in result.failed} == {BATCH_ERROR_CODE}
        assert {entry.message for entry in result.failed} == {"try later"}
        assert [entry.ack_token for entry in result.successful] == submitted[10:]
        log.error.assert_called_once()
        assert_exhaustive(result, submitted)

    @pytest.mark.asyncio
    async def test_unreported_entries_become_failures(self):
        submitted = tokens(3)
        deleter = RecordingDeleter(
            lambda entries: {"Successful": [{"Id": "0"}, {"Id": "99"}]}
        )
        log = MagicMock()

        result = await BatchDeleteCoordinator(deleter, log=log).run(submitted)

        assert [entry.id for entry in result.successful] == ["0"]
        assert [entry.code for entry in result.failed] == [MISSING_RESULT_CODE] * 2
        log.warning.assert_called_once()
        assert_exhaustive(result, submitted)

    @pytest.mark.parametrize("count", [1, 9, 10, 11, 20, 23])
    @pytest.mark.asyncio
    async def test_batch_sizes(self, count):
        deleter = RecordingDeleter()
        result = await BatchDeleteCoordinator(deleter, log=MagicMock()).run(tokens(count))

        sizes = [len(batch) for batch in deleter.batches]
        assert sum(sizes) == count
        assert all(size <= 10 for size in sizes)
        assert_exhaustive(result, tokens(count))

    @pytest.mark.asyncio
    async def test_message_without_token_is_failed_without_sending(self):
        deleter = RecordingDeleter()
        messages = ["handle-0", {"MessageId": "m-1"}, "handle-2"]

        result = await BatchDeleteCoordinator(deleter, log=MagicMock()).run(messages)

        assert [e["Id"] for e in deleter.batches[0]] == ["0", "2"]
        assert [entry.id for entry in result.successful] == ["0", "2"]
        [failure] = result.failed
        assert (failure.id, failure.code, failure.sender_fault) == ("1", "InvalidMessage", True)
        assert result.total == 3

    @pytest.mark.asyncio
    async def test_only_invalid_messages_make_no_call(self):
        deleter = RecordingDeleter()

        result = await BatchDeleteCoordinator(deleter, log=MagicMock()).run([{}, ""])

        assert deleter.batches == []
        assert [entry.id for entry in result.failed] == ["0", "1"]

    def test_rejects_non_positive_batch_size(self):
        with pytest.raises(ValueError):
            BatchDeleteCoordinator(RecordingDeleter(), batch_size=0)


@pytest.mark.unit
class TestAcknowledgeEach:
    @pytest.mark.asyncio
    async def test_collects_outcomes_in_order(self):
        messages = [
            QueueMessage(message_id=str(i), body="{}", ack_token=str(i)) for i in range(3)
        ]

        async def acknowledge(message):
            if message.ack_token == "1":
                return OperationResult.error(
                    OperationStatus.NOT_FOUND, "gone", error_code="NotFoundError"
                )
            return OperationResult.success()

        result = await acknowledge_each(messages, acknowledge)

        assert [entry.ack_token for entry in result.successful] == ["0", "2"]
        assert result.failed[0].code == "NotFoundError"
        assert result.failed[0].message == "gone"

    @pytest.mark.asyncio
    async def test_invalid_message_recorded_in_position(self):
        async def acknowledge(message):
            return OperationResult.success()

        result = await acknowledge_each([{"body": "{}"}, "t-1"], acknowledge)

        assert [entry.id for entry in result.successful] == ["1"]
        assert result.failed[0].id == "0"
        assert result.failed[0].code == "InvalidMessage"
