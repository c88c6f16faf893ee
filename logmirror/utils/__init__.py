"""Shared utilities: configuration and structured logging."""

from logmirror.utils.config import Config, get_config, reset_config
from logmirror.utils.logging import configure_logging, cycle_context, get_logger

__all__ = [
    "Config",
    "configure_logging",
    "cycle_context",
    "get_config",
    "get_logger",
    "reset_config",
]
