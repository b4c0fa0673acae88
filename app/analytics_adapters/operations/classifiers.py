"""Error classifiers for provider exceptions.

Converts provider-specific exceptions (AWS SDK, pymongo, socket clients) into
the normalized `ProviderError`, then into either an `ErrorClassification`
(storage adapters) or an `OperationResult` (queue adapters). Every function
here is total: a classifier that raises would mask the error it was asked to
describe.

Key Functions:
- describe_error(): any exception or error payload -> ProviderError
- classify_error_code(): provider code -> ErrorType (pure)
- classify_error(): log, then exception -> ErrorClassification
- to_operation_result(): log, then exception -> OperationResult

Usage:
    from analytics_adapters.operations.classifiers import classify_error

    try:
        client.put_item(TableName=table, Item=item)
    except Exception as exc:
        raise StorageError(classify_error(exc, service="dynamodb")) from exc
"""

from typing import Any, Iterable, Optional

import structlog
from botocore.exceptions import ClientError

from analytics_adapters.operations.errors import (
    ErrorClassification,
    ErrorCode,
    ProviderError,
    normalize_error_code,
)
from analytics_adapters.operations.result import OperationResult
from analytics_adapters.operations.status import ErrorType, OperationStatus

logger = structlog.get_logger()

# "Target does not exist" and "target already exists in a conflicting state".
DEFAULT_CONTINUE_CODES = frozenset(
    {"ResourceNotFoundException", "ResourceInUseException"}
)

DEFAULT_RETRY_AFTER = 60


def _code_from_mapping(payload: dict) -> tuple[Optional[str], Optional[str]]:
    error = payload.get("Error")
    if isinstance(error, dict):
        return error.get("Code"), error.get("Message")
    code = payload.get("Code") or payload.get("code") or payload.get("name")
    message = payload.get("Message") or payload.get("message")
    return (str(code) if code is not None else None), message


def _extract(exc: Any) -> tuple[str, str]:
    if exc is None:
        return "Unknown", "unknown error"

    if isinstance(exc, ClientError):
        error_info = (exc.response or {}).get("Error", {})
        return error_info.get("Code") or "Unknown", error_info.get("Message") or str(
            exc
        )

    if isinstance(exc, dict):
        code, message = _code_from_mapping(exc)
        return code or "Unknown", message or str(exc)

    details = getattr(exc, "details", None)
    if isinstance(details, dict) and details.get("codeName"):
        return str(details["codeName"]), str(details.get("errmsg") or exc)

    for attr in ("code_name", "name", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, str) and value:
            return value, str(exc)

    return type(exc).__name__, str(exc)


def describe_error(exc: Any, service: str = "unknown") -> ProviderError:
    """Normalize an exception or raw error payload into a ProviderError.

    Never raises. Codes and messages are coerced to strings; objects whose
    attributes or ``__str__`` blow up are reported with provider code
    ``Unknown``.
    """
    try:
        raw_code, raw_message = _extract(exc)
        provider_code, message = str(raw_code), str(raw_message)
    except Exception:  # pylint: disable=broad-except
        provider_code, message = "Unknown", "unreadable provider error"

    original = exc if isinstance(exc, BaseException) else None
    return ProviderError(
        code=normalize_error_code(provider_code),
        provider_code=provider_code,
        message=message,
        service=service,
        original=original,
    )


def classify_error_code(
    provider_code: Optional[str],
    continue_codes: Iterable[str] = DEFAULT_CONTINUE_CODES,
) -> ErrorType:
    """Map a provider error code to ABORT or CONTINUE.

    Args:
        provider_code: Code or name assigned by the provider
        continue_codes: Codes the adapter treats as acceptable no-ops

    Returns:
        ErrorType.CONTINUE for the adapter's not-found / conflicting-state
        codes, ErrorType.ABORT for anything else (throttling included)
    """
    if provider_code and provider_code in continue_codes:
        return ErrorType.CONTINUE
    return ErrorType.ABORT


def classify_error(
    exc: Any,
    *,
    service: str = "unknown",
    continue_codes: Iterable[str] = DEFAULT_CONTINUE_CODES,
    log: Optional[Any] = None,
) -> ErrorClassification:
    """Log a raw provider error and classify it.

    Args:
        exc: Exception (or raw error payload) raised by the provider
        service: Name of the adapter/service, for logs
        continue_codes: Codes this adapter classifies as CONTINUE
        log: Logger to use, defaults to the module logger

    Returns:
        ErrorClassification carrying the normalized error
    """
    error = describe_error(exc, service=service)
    error_type = classify_error_code(error.provider_code, continue_codes)
    (log or logger).error(
        "provider_error",
        service=service,
        provider_code=error.provider_code,
        error_code=error.code.value,
        error=error.message,
        classification=error_type.name,
    )
    return ErrorClassification(error_type=error_type, error=error)


def to_operation_result(
    exc: Any,
    *,
    service: str = "unknown",
    log: Optional[Any] = None,
) -> OperationResult:
    """Log a raw provider error and convert it into an OperationResult.

    Error Code Mapping:
    - THROTTLED: TRANSIENT_ERROR with retry_after
    - CONNECTION: TRANSIENT_ERROR
    - ACCESS_DENIED: UNAUTHORIZED
    - RESOURCE_NOT_FOUND / NON_EXISTENT_QUEUE: NOT_FOUND
    - Other: PERMANENT_ERROR

    The result's ``error_code`` is the provider's own code so callers keep
    root-cause context.
    """
    error = describe_error(exc, service=service)
    (log or logger).error(
        "provider_error",
        service=service,
        provider_code=error.provider_code,
        error_code=error.code.value,
        error=error.message,
    )

    if error.code is ErrorCode.THROTTLED:
        return OperationResult.transient_error(
            error.message,
            error_code=error.provider_code,
            retry_after=DEFAULT_RETRY_AFTER,
        )
    if error.code is ErrorCode.CONNECTION:
        return OperationResult.transient_error(
            error.message, error_code=error.provider_code
        )
    if error.code is ErrorCode.ACCESS_DENIED:
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED, error.message, error_code=error.provider_code
        )
    if error.code in (ErrorCode.RESOURCE_NOT_FOUND, ErrorCode.NON_EXISTENT_QUEUE):
        return OperationResult.not_found(error.message, error_code=error.provider_code)
    return OperationResult.permanent_error(
        error.message, error_code=error.provider_code
    )
