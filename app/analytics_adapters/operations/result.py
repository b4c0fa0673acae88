"""The value every queue adapter operation hands back to its caller.

Queue adapters never raise for provider failures; they fold them into an
``OperationResult`` so a consumer loop can branch on ``status`` alone.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from analytics_adapters.operations.status import OperationStatus

if TYPE_CHECKING:
    from analytics_adapters.queue.models import BatchDeleteResult

UNDEFINED_CONFIGURATION = "UNDEFINED_CONFIGURATION"


@dataclass
class OperationResult:
    """Outcome of a queue call.

    ``data`` holds whatever the call produced: the raw provider response for
    sends and deletes, a list of `QueueMessage` for receives, or a
    `BatchDeleteResult` for batch acknowledgements. ``retry_after`` is only
    populated for throttling responses.
    """

    status: OperationStatus
    message: str
    data: Optional[Any] = None
    error_code: Optional[str] = None
    retry_after: Optional[int] = None

    @property
    def is_success(self) -> bool:
        return self.status is OperationStatus.SUCCESS

    @classmethod
    def success(cls, data: Optional[Any] = None, message: str = "ok") -> "OperationResult":
        return cls(OperationStatus.SUCCESS, message, data=data)

    @classmethod
    def error(
        cls,
        status: OperationStatus,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
        data: Optional[Any] = None,
    ) -> "OperationResult":
        return cls(status, message, data=data, error_code=error_code, retry_after=retry_after)

    @classmethod
    def transient_error(
        cls,
        message: str,
        error_code: Optional[str] = None,
        retry_after: Optional[int] = None,
    ) -> "OperationResult":
        """Failure worth retrying later (throttling, timeouts, 5xx)."""
        return cls.error(
            OperationStatus.TRANSIENT_ERROR,
            message,
            error_code=error_code,
            retry_after=retry_after,
        )

    @classmethod
    def permanent_error(cls, message: str, error_code: Optional[str] = None) -> "OperationResult":
        return cls.error(OperationStatus.PERMANENT_ERROR, message, error_code=error_code)

    @classmethod
    def not_found(cls, message: str, error_code: Optional[str] = None) -> "OperationResult":
        return cls.error(OperationStatus.NOT_FOUND, message, error_code=error_code)

    @classmethod
    def undefined(cls, name: str) -> "OperationResult":
        """Returned instead of calling the provider when ``name`` is not set.

        The message is always ``"<name> is undefined"``.
        """
        return cls.error(
            OperationStatus.CONFIGURATION_ERROR,
            f"{name} is undefined",
            error_code=UNDEFINED_CONFIGURATION,
        )

    @classmethod
    def batch(cls, result: "BatchDeleteResult") -> "OperationResult":
        """Wrap a finished batch acknowledgement.

        Individual failures live in ``result.failed``; the call itself counts
        as a success once every entry has been attempted.
        """
        return cls.success(
            data=result,
            message=f"{len(result.successful)} deleted, {len(result.failed)} failed",
        )
