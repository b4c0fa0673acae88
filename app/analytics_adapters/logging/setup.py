"""Structlog configuration for processes that embed the adapters.

Call ``configure_logging()`` once at startup. Modules obtain their logger
with ``get_module_logger()``, which binds the module path so events from the
SQS adapter and the DynamoDB adapter can be told apart::

    logger = get_module_logger()
    logger.info("sqs_queue_created", queue_name=name)
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from analytics_adapters.configuration import get_settings
from analytics_adapters.logging.formatters import (
    add_environment_info,
    mask_sensitive_data,
    truncate_large_values,
)

SILENT = logging.CRITICAL + 1

_CALLSITE = structlog.processors.CallsiteParameterAdder(
    parameters=[
        structlog.processors.CallsiteParameter.MODULE,
        structlog.processors.CallsiteParameter.LINENO,
        structlog.processors.CallsiteParameter.FUNC_NAME,
    ]
)


def _running_under_pytest() -> bool:
    return "pytest" in sys.modules


def _apply(processors: list, level: int, force: bool = False) -> BoundLogger:
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", level=level, force=force)
    return structlog.stdlib.get_logger()


def build_processors(environment: str, json_output: bool) -> list:
    """Processor chain shared by every logger, ending in the renderer.

    Credentials are masked before truncation so a long connection string is
    never partially printed.
    """
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _CALLSITE,
        add_environment_info(environment),
        mask_sensitive_data(),
        truncate_large_values(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        renderer,
    ]


def configure_logging(
    log_level: Optional[str] = None,
    is_production: Optional[bool] = None,
) -> BoundLogger:
    """Configure structlog and the stdlib root logger.

    Args:
        log_level: Level name overriding ``LOG_LEVEL``.
        is_production: Overrides the environment check; production renders
            JSON lines, anything else renders for a terminal.

    Under pytest every record is dropped regardless of the arguments.
    """
    if _running_under_pytest():
        logging.root.setLevel(SILENT)
        return _apply(
            [structlog.stdlib.add_log_level, structlog.dev.ConsoleRenderer()],
            SILENT,
            force=True,
        )

    settings = get_settings()
    json_output = settings.is_production if is_production is None else is_production
    level_name = (log_level or settings.LOG_LEVEL).upper()
    return _apply(
        build_processors(settings.ENVIRONMENT, json_output),
        logging.getLevelNamesMapping().get(level_name, logging.INFO),
    )


def get_module_logger() -> BoundLogger:
    """Logger bound with the caller's module.

    ``component`` is the last segment of the module path (``sqs`` for
    ``analytics_adapters.queue.sqs``) and ``module_path`` the full name.
    """
    module_path = sys._getframe(1).f_globals.get("__name__", "unknown")
    return structlog.stdlib.get_logger().bind(
        component=module_path.rsplit(".", 1)[-1],
        module_path=module_path,
    )
