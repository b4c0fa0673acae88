from typing import Any, List, Mapping, Protocol, Sequence, Union, runtime_checkable

from analytics_adapters.operations.result import OperationResult
from analytics_adapters.queue.models import QueueMessage

MessageRef = Union[QueueMessage, Mapping[str, Any], str]


@runtime_checkable
class QueueAdapter(Protocol):
    """Capability interface shared by the queue adapters.

    Transport and provider failures come back as non-success
    `OperationResult`s; only `extract_payloads` raises, on malformed bodies.
    """

    async def enqueue(
        self, event: Mapping[str, Any]
    ) -> OperationResult:  # pragma: no cover - typing helper
        ...

    async def dequeue(self) -> OperationResult:  # pragma: no cover - typing helper
        ...

    async def acknowledge(
        self, message: MessageRef
    ) -> OperationResult:  # pragma: no cover - typing helper
        ...

    async def batch_acknowledge(
        self, messages: Sequence[MessageRef]
    ) -> OperationResult:  # pragma: no cover - typing helper
        ...

    def extract_payloads(
        self, messages: Sequence[QueueMessage]
    ) -> List[Any]:  # pragma: no cover - typing helper
        ...


INVALID_MESSAGE_CODE = "InvalidMessage"


class InvalidMessageError(ValueError):
    """A message handed back for acknowledgment carries no usable token."""

    code = INVALID_MESSAGE_CODE


def ack_token_of(message: MessageRef, key: str = "ReceiptHandle") -> str:
    """Return the acknowledgment token of a message, raw mapping or token.

    Raises:
        InvalidMessageError: a mapping without ``key``, or an empty token
    """
    if isinstance(message, QueueMessage):
        token = message.ack_token
    elif isinstance(message, Mapping):
        token = message.get(key)
    else:
        token = message
    if token is None or token == "":
        raise InvalidMessageError(f"Message has no {key} to acknowledge")
    return str(token)
