"""
utils/logging.py — structlog setup for the Lambda handler and the CLI.

JSON output is what CloudWatch expects; the console renderer is for local
runs. The CLI sends records to stderr. Warm Lambda containers call
configure_logging() on every invocation, so repeated calls are cheap no-ops
unless the level, format or stream changes.

Usage:
    from tender_writer.utils.logging import bind_invocation, configure_logging, get_logger

    configure_logging(log_format="json")
    bind_invocation(request_id=context.aws_request_id)

    log = get_logger(__name__)
    log.info("batch_processing_start", batch_number=1, message_count=10)
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

import structlog

from tender_shared.config import settings

# Chatty third-party loggers held at WARNING unless running at DEBUG
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "sqlalchemy.engine")

_active: tuple[str, str, TextIO] | None = None


def configure_logging(
    log_level: str | None = None,
    log_format: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level:  Override settings.log_level ("DEBUG", "INFO", ...).
        log_format: Override settings.log_format ("json" | "console").
        stream:     Where records go; stdout unless given. The CLI passes
                    stderr so command output stays clean.
    """
    global _active

    level_name = (log_level or settings.log_level).upper()
    fmt = log_format or settings.log_format
    target = stream or sys.stdout
    if _active == (level_name, fmt, target):
        return

    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(format="%(message)s", stream=target, level=level, force=True)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "json":
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors += [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=target.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _active = (level_name, fmt, target)


def bind_invocation(**values: Any) -> None:
    """Replace the per-invocation context merged into every log record."""
    structlog.contextvars.clear_contextvars()
    bound = {k: v for k, v in values.items() if v is not None}
    if bound:
        structlog.contextvars.bind_contextvars(**bound)


def get_logger(name: str, **initial_values: Any) -> structlog.BoundLogger:
    """
    Return a structlog logger for `name`.

    With initial values the logger is bound immediately, so call it after
    configure_logging() in that case.
    """
    logger = structlog.get_logger(name)
    if initial_values:
        logger = logger.bind(**initial_values)
    return logger  # type: ignore[return-value]
