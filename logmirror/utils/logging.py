"""
Structured logging for logmirror, built on structlog.

Every module logs through ``get_logger(__name__)`` with keyword context
(byte offsets, sizes, durations). Output is JSON by default so a log
shipper can parse it; the console renderer is for local runs.

A sync cycle wraps its work in ``cycle_context`` so that every entry
written during the cycle, from any module, carries the same ``cycle_id``.
"""

import logging
import sys
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

import structlog
from structlog.types import EventDict, Processor

APP_NAME = "logmirror"

# Event keys whose values never reach the log output.
SECRET_KEYS = frozenset({"token", "access_token", "authorization"})

# Libraries that log every HTTP request at INFO.
NOISY_LOGGERS = ("httpx", "httpcore")


def add_app_context(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag each entry with the application name."""
    event_dict["app"] = APP_NAME
    return event_dict


def redact_secrets(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credential values passed as log context."""
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = "***"
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_output: str = "stdout",
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: ``json`` or ``console``
        log_output: ``stdout`` or ``stderr``; the CLI uses stderr so that
            command output on stdout stays machine readable

    Raises:
        ValueError: If log_level is not a known level name
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level!r}")

    stream = sys.stdout if log_output == "stdout" else sys.stderr
    logging.basicConfig(format="%(message)s", stream=stream, level=level, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_app_context,
        redact_secrets,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=stream.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


@contextmanager
def cycle_context(**context: Any) -> Iterator[str]:
    """
    Bind a fresh ``cycle_id`` plus extra context for the enclosed block.

    Yields:
        The cycle id
    """
    cycle_id = uuid.uuid4().hex[:12]
    with structlog.contextvars.bound_contextvars(cycle_id=cycle_id, **context):
        yield cycle_id


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
