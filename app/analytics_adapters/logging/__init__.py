"""Structured logging for the adapters.

``configure_logging()`` sets up structlog for the process and
``get_module_logger()`` returns a logger bound to the calling module. The
processors in ``formatters`` redact credentials and bound line size.
"""

from analytics_adapters.logging.formatters import (
    SENSITIVE_PATTERNS,
    add_environment_info,
    mask_sensitive_data,
    scrub_url_credentials,
    truncate_large_values,
)
from analytics_adapters.logging.setup import (
    build_processors,
    configure_logging,
    get_module_logger,
)

__all__ = [
    "configure_logging",
    "get_module_logger",
    "build_processors",
    "mask_sensitive_data",
    "scrub_url_credentials",
    "truncate_large_values",
    "add_environment_info",
    "SENSITIVE_PATTERNS",
]
