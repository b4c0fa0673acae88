"""Status values carried by queue results and storage errors."""

from enum import Enum


class OperationStatus(Enum):
    """How a queue call ended.

    ``CONFIGURATION_ERROR`` means the provider was never contacted because a
    required setting such as ``SQS_QUEUE_URL`` is empty. ``TRANSIENT_ERROR``
    covers throttling, timeouts and 5xx responses; everything else the
    provider rejected is ``PERMANENT_ERROR`` unless it maps to one of the more
    specific members.
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFIGURATION_ERROR = "configuration_error"


class ErrorType(Enum):
    # CONTINUE: the failure only means there was nothing to do (table already
    # exists, table gone before a delete). ABORT: anything else.
    ABORT = 0
    CONTINUE = 1
