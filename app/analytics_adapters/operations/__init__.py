"""Operation result types, error taxonomy and classifiers.

This package contains the result type returned by queue adapters, the
ABORT/CONTINUE classification raised by storage adapters, and the
classifiers that turn provider exceptions into either.
"""

from analytics_adapters.operations.classifiers import (
    classify_error,
    classify_error_code,
    describe_error,
    to_operation_result,
)
from analytics_adapters.operations.errors import (
    ErrorClassification,
    ErrorCode,
    ProviderError,
    StorageError,
)
from analytics_adapters.operations.result import OperationResult
from analytics_adapters.operations.status import ErrorType, OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "ErrorType",
    "ErrorCode",
    "ErrorClassification",
    "ProviderError",
    "StorageError",
    "classify_error",
    "classify_error_code",
    "describe_error",
    "to_operation_result",
]
