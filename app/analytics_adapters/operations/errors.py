"""Normalized provider errors.

Vendor SDKs raise loosely typed errors (botocore ``ClientError`` with a
response dict, pymongo errors with numeric codes and ``codeName``, plain
exceptions from socket clients). Adapters convert them at the boundary into a
`ProviderError` carrying a closed `ErrorCode`, and storage adapters raise
`StorageError` with the resulting `ErrorClassification`.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from analytics_adapters.operations.status import ErrorType


class ErrorCode(Enum):
    """Closed set of error codes understood by callers."""

    RESOURCE_NOT_FOUND = "resource_not_found"
    RESOURCE_IN_USE = "resource_in_use"
    THROTTLED = "throttled"
    ACCESS_DENIED = "access_denied"
    VALIDATION = "validation"
    NON_EXISTENT_QUEUE = "non_existent_queue"
    CONNECTION = "connection"
    BATCH_ERROR = "batch_error"
    UNKNOWN = "unknown"


PROVIDER_CODE_MAP: dict[str, ErrorCode] = {
    "ResourceNotFoundException": ErrorCode.RESOURCE_NOT_FOUND,
    "NamespaceNotFound": ErrorCode.RESOURCE_NOT_FOUND,
    "NotFoundError": ErrorCode.RESOURCE_NOT_FOUND,
    "ResourceInUseException": ErrorCode.RESOURCE_IN_USE,
    "NamespaceExists": ErrorCode.RESOURCE_IN_USE,
    "Throttling": ErrorCode.THROTTLED,
    "ThrottlingException": ErrorCode.THROTTLED,
    "RequestLimitExceeded": ErrorCode.THROTTLED,
    "ProvisionedThroughputExceededException": ErrorCode.THROTTLED,
    "RequestThrottled": ErrorCode.THROTTLED,
    "AccessDeniedException": ErrorCode.ACCESS_DENIED,
    "AccessDenied": ErrorCode.ACCESS_DENIED,
    "UnauthorizedOperation": ErrorCode.ACCESS_DENIED,
    "ValidationException": ErrorCode.VALIDATION,
    "InvalidParameterValue": ErrorCode.VALIDATION,
    "InvalidParameterException": ErrorCode.VALIDATION,
    "InvalidMessage": ErrorCode.VALIDATION,
    "AWS.SimpleQueueService.NonExistentQueue": ErrorCode.NON_EXISTENT_QUEUE,
    "QueueDoesNotExist": ErrorCode.NON_EXISTENT_QUEUE,
    "EndpointConnectionError": ErrorCode.CONNECTION,
    "ConnectTimeoutError": ErrorCode.CONNECTION,
    "ReadTimeoutError": ErrorCode.CONNECTION,
    "ConnectionError": ErrorCode.CONNECTION,
    "ConnectionRefusedError": ErrorCode.CONNECTION,
    "TimeoutError": ErrorCode.CONNECTION,
    "ServerSelectionTimeoutError": ErrorCode.CONNECTION,
    "BatchError": ErrorCode.BATCH_ERROR,
}


def normalize_error_code(provider_code: Optional[str]) -> ErrorCode:
    """Map a raw provider code onto the closed `ErrorCode` set."""
    if not provider_code:
        return ErrorCode.UNKNOWN
    return PROVIDER_CODE_MAP.get(provider_code, ErrorCode.UNKNOWN)


@dataclass(frozen=True)
class ProviderError:
    """A provider error normalized at the adapter boundary.

    Attributes:
        code: Normalized error code
        provider_code: The code or name the provider assigned, verbatim
        message: Provider error message
        service: Adapter/service that raised it (e.g. ``sqs``, ``dynamodb``)
        original: The exception as raised, kept for root-cause context
    """

    code: ErrorCode
    provider_code: str
    message: str
    service: str = "unknown"
    original: Optional[BaseException] = field(
        default=None, compare=False, repr=False
    )


@dataclass(frozen=True)
class ErrorClassification:
    """Caller-facing verdict for a storage failure."""

    error_type: ErrorType
    error: ProviderError

    @property
    def should_abort(self) -> bool:
        return self.error_type is ErrorType.ABORT


class StorageError(Exception):
    """Raised by storage adapters with the classification of the failure."""

    def __init__(self, classification: ErrorClassification):
        super().__init__(classification.error.message)
        self.classification = classification

    @property
    def error_type(self) -> ErrorType:
        return self.classification.error_type

    @property
    def error(self) -> ProviderError:
        return self.classification.error
