"""Structured logging configuration for atom-ops.

Routes structlog and stdlib logging (discord.py, httpx, asyncpg) through one
handler: JSON lines in production or when piped, console output on a TTY.
"""

import logging
import sys
from typing import Any

import structlog

from atom_ops.alerter.classifier import Severity


def configure_logging(
    service_name: str,
    level: str = "INFO",
    environment: str = "development",
) -> logging.Handler:
    """Configure structured logging for the bot process.

    Args:
        service_name: Bound as ``service`` on every entry (e.g. 'atom-bot')
        level: Root log level name
        environment: 'production' always renders JSON

    Returns:
        The handler installed on the root logger
    """
    log_level = getattr(logging, level.upper())
    use_console = environment != "production" and sys.stdout.isatty()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor = (
        structlog.dev.ConsoleRenderer() if use_console else structlog.processors.JSONRenderer()
    )
    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=shared_processors, processor=renderer)
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    structlog.contextvars.bind_contextvars(service=service_name, environment=environment)
    return handler


def log_at_severity(logger: Any, severity: Severity, event: str, **kwargs: Any) -> None:
    """Log an event at the level matching an error severity.

    low -> info, medium -> warning, high -> error, critical -> critical.
    """
    kwargs.setdefault("severity", severity.value)
    if severity is Severity.CRITICAL:
        logger.critical(event, **kwargs)
    elif severity is Severity.HIGH:
        logger.error(event, **kwargs)
    elif severity is Severity.MEDIUM:
        logger.warning(event, **kwargs)
    else:
        logger.info(event, **kwargs)
