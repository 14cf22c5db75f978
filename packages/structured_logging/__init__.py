"""Structured logging for the audited store.

Every event logged while an actor context is active carries the acting user
and request method, so store and audit events can be traced back to the
request that caused them.
"""

import logging
import sys
from pathlib import Path

import structlog
from structlog.types import EventDict, WrappedLogger

from packages.audit_capture.middleware import get_actor_context

# Marks the file handler installed by setup_logging so a later call replaces it
_FILE_HANDLER_NAME = "change_audit_file"


def add_actor_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add the acting user and method to log entries if available.

    Values passed explicitly to the log call win over the context.
    """
    actor = get_actor_context()
    if actor is not None:
        if actor.actor_id:
            event_dict.setdefault("actor_id", actor.actor_id)
        if actor.method:
            event_dict.setdefault("method", actor.method)
    return event_dict


def _replace_file_handler(root: logging.Logger, log_file: str | None, level: int) -> None:
    for handler in list(root.handlers):
        if handler.get_name() == _FILE_HANDLER_NAME:
            root.removeHandler(handler)
            handler.close()

    if not log_file:
        return

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.set_name(_FILE_HANDLER_NAME)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter("%(message)s"))
    root.addHandler(file_handler)


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_output: bool = True,
) -> None:
    """Configure structured logging for the application.

    Safe to call repeatedly: the level is reapplied and the log file handler
    from a previous call is replaced.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output (in addition to stdout)
        json_output: If True, render JSON lines; otherwise console output
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(format="%(message)s", level=numeric_level, stream=sys.stdout)
    root = logging.getLogger()
    root.setLevel(numeric_level)
    _replace_file_handler(root, log_file, numeric_level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        add_actor_context,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


__all__ = [
    "add_actor_context",
    "get_logger",
    "setup_logging",
]
