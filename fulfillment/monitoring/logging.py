"""
Structured logging for fulfillment steps

Carries order identifiers (book, user, step, resume token) through a
context variable so every log line emitted while a step runs can be
correlated with the order, both in JSON and in plain-text output.
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any

# Context variable propagating the current order's identifiers
order_context: ContextVar[dict[str, Any]] = ContextVar("order_context", default={})

_CONTEXT_FIELDS = ("book_id", "user_id", "step_name", "resume_token")


def short_token(token: str | None, length: int = 12) -> str:
    """Truncate an opaque resume token for log output."""
    if not token:
        return ""
    return token if len(token) <= length else f"{token[:length]}…"


class OrderJsonFormatter(logging.Formatter):
    """
    JSON formatter with the order context merged into each entry
    """

    # Fields to extract from log record if present
    _EXTRA_FIELDS = (
        "book_id",
        "user_id",
        "step_name",
        "resume_token",
        "error_type",
        "outcome",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._build_base_entry(record)
        log_entry.update({k: v for k, v in order_context.get({}).items() if v})
        for field in self._EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value:
                log_entry[field] = value
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }


class OrderContextFilter(logging.Filter):
    """
    Logging filter that copies the order context onto log records
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = order_context.get({})
        for field in _CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, context.get(field, ""))
        return True


@contextmanager
def bind_order_context(**fields: Any) -> Iterator[dict[str, Any]]:
    """
    Bind order identifiers for the duration of a block.

    Example:
        >>> with bind_order_context(book_id="B1", step_name="check_inventory"):
        ...     logger.info("checking stock")
    """
    if "resume_token" in fields:
        fields["resume_token"] = short_token(fields["resume_token"])
    context = {**order_context.get({}), **{k: v for k, v in fields.items() if v is not None}}
    reset_token = order_context.set(context)
    try:
        yield context
    finally:
        order_context.reset(reset_token)


def setup_fulfillment_logging(
    log_level: str = "INFO", json_format: bool = True, include_console: bool = True
) -> logging.Logger:
    """
    Set up structured logging for the ``fulfillment`` logger namespace

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON formatting for structured logs
        include_console: Include console handler

    Returns:
        The configured namespace logger
    """
    root_logger = logging.getLogger("fulfillment")
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if include_console:
        console_handler = logging.StreamHandler()
        console_handler.addFilter(OrderContextFilter())

        if json_format:
            console_handler.setFormatter(OrderJsonFormatter())
        else:
            console_handler.setFormatter(
                logging.Formatter(
                    "%(asctime)s - %(name)s - %(levelname)s - "
                    "[%(step_name)s book=%(book_id)s user=%(user_id)s] - %(message)s"
                )
            )

        root_logger.addHandler(console_handler)

    return root_logger
