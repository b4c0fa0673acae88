"""Queue message and batch acknowledgment result types."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional


@dataclass(frozen=True)
class QueueMessage:
    """A message received from a queue.

    Attributes:
        message_id: Provider-assigned message identity
        body: Raw message body, usually a JSON document
        ack_token: Token to present, unchanged, to acknowledge the message
            (SQS receipt handle, Beanstalkd job id, Redis task id)
        attributes: Provider message attributes
        raw: The provider's message as received
    """

    message_id: str
    body: Optional[str]
    ack_token: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_sqs(cls, message: Mapping[str, Any]) -> "QueueMessage":
        return cls(
            message_id=message.get("MessageId", ""),
            body=message.get("Body"),
            ack_token=message.get("ReceiptHandle", ""),
            attributes=message.get("MessageAttributes") or {},
            raw=message,
        )

    def payload(self) -> Any:
        """Decode the JSON body; an empty body decodes to ``{}``."""
        return json.loads(self.body) if self.body else {}


def decode_payloads(messages: Iterable[QueueMessage]) -> List[Any]:
    return [message.payload() for message in messages]


@dataclass(frozen=True)
class BatchDeleteSuccess:
    id: str
    ack_token: str

    def to_dict(self) -> Dict[str, Any]:
        return {"Id": self.id}


@dataclass(frozen=True)
class BatchDeleteFailure:
    id: str
    ack_token: str
    code: str
    message: str
    sender_fault: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Id": self.id,
            "Code": self.code,
            "Message": self.message,
            "SenderFault": self.sender_fault,
        }


@dataclass
class BatchDeleteResult:
    """Aggregated outcome of a batch acknowledgment.

    Every submitted token appears exactly once, in ``successful`` or in
    ``failed``, in submission order.
    """

    successful: List[BatchDeleteSuccess] = field(default_factory=list)
    failed: List[BatchDeleteFailure] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.successful) + len(self.failed)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def extend(self, other: "BatchDeleteResult") -> None:
        self.successful.extend(other.successful)
        self.failed.extend(other.failed)

    def to_dict(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "successful": [entry.to_dict() for entry in self.successful],
            "failed": [entry.to_dict() for entry in self.failed],
        }
