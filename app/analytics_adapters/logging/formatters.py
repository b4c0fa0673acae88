"""Structlog processors applied before rendering.

Adapters log queue URLs, receipt handles, connection strings and message
bodies. These processors keep credentials out of the output and keep a single
line bounded in size.
"""

import re
from typing import Any, Callable, Iterable

EventDict = dict[str, Any]
Processor = Callable[[Any, str, EventDict], EventDict]

SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "authorization",
        "credential",
        "access_key",
        "receipt_handle",
        "connection_string",
        "dsn",
    }
)

# user:password@ section of mongodb://, redis:// and http:// URLs
_URL_CREDENTIALS = re.compile(r"(?P<scheme>[a-z][a-z0-9+.-]*://)[^/@\s]+@", re.IGNORECASE)


def scrub_url_credentials(value: str, mask_value: str = "***") -> str:
    """Replace the userinfo part of any URL found in ``value``."""
    return _URL_CREDENTIALS.sub(lambda m: f"{m.group('scheme')}{mask_value}@", value)


def _key_matcher(patterns: Iterable[str]) -> re.Pattern:
    alternatives = "|".join(re.escape(p) for p in sorted(patterns))
    return re.compile(alternatives, re.IGNORECASE)


def mask_sensitive_data(
    mask_value: str = "***REDACTED***",
    additional_patterns: frozenset[str] | None = None,
) -> Processor:
    """Build a processor that redacts credentials.

    Any key containing one of the patterns has its value replaced outright.
    Other string values keep their content but lose URL userinfo, so a
    ``redis://user:pw@host`` logged under an innocent key still comes out
    clean. ``None`` values are left alone.
    """
    is_sensitive = _key_matcher(SENSITIVE_PATTERNS | (additional_patterns or frozenset()))

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in list(event_dict.items()):
            if value is None:
                continue
            if is_sensitive.search(key):
                event_dict[key] = mask_value
            elif isinstance(value, str) and "@" in value:
                event_dict[key] = scrub_url_credentials(value)
        return event_dict

    return processor


def truncate_large_values(max_length: int = 500) -> Processor:
    """Build a processor that cuts long strings and bytes to ``max_length``."""

    def shorten(value: Any) -> Any:
        if isinstance(value, bytes):
            value = value.decode("utf-8", errors="replace")
        if not isinstance(value, str) or len(value) <= max_length:
            return value
        return f"{value[:max_length]}...[truncated, {len(value)} chars total]"

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        return {key: shorten(value) for key, value in event_dict.items()}

    return processor


def add_environment_info(environment: str) -> Processor:
    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict["environment"] = environment
        return event_dict

    return processor
