"""Unit tests for queue message and batch result types."""

import json

import pytest

from analytics_adapters.queue.models import (
    BatchDeleteFailure,
    BatchDeleteResult,
    BatchDeleteSuccess,
    QueueMessage,
    decode_payloads,
)


@pytest.mark.unit
class TestQueueMessage:
    def test_from_sqs(self):
        raw = {"MessageId": "m-1", "ReceiptHandle": "rh", "Body": '{"a": 1}'}

        message = QueueMessage.from_sqs(raw)

        assert message.message_id == "m-1"
        assert message.ack_token == "rh"
        assert message.attributes == {}
        assert message.raw is raw

    def test_empty_body_decodes_to_empty_dict(self):
        messages = [
            QueueMessage(message_id="1", body=None, ack_token="1"),
            QueueMessage(message_id="2", body="", ack_token="2"),
            QueueMessage(message_id="3", body=json.dumps([1, 2]), ack_token="3"),
        ]
        assert decode_payloads(messages) == [{}, {}, [1, 2]]

    def test_malformed_body_raises(self):
        with pytest.raises(json.JSONDecodeError):
            QueueMessage(message_id="1", body="{not json", ack_token="1").payload()


@pytest.mark.unit
class TestBatchDeleteResult:
    def test_total_and_dict_shape(self):
        result = BatchDeleteResult(
            successful=[BatchDeleteSuccess(id="0", ack_token="a")],
            failed=[
                BatchDeleteFailure(id="1", ack_token="b", code="BatchError", message="down")
            ],
        )

        assert result.total == 2
        assert not result.all_succeeded
        assert result.to_dict() == {
            "successful": [{"Id": "0"}],
            "failed": [
                {"Id": "1", "Code": "BatchError", "Message": "down", "SenderFault": False}
            ],
        }
