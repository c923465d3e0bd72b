"""
Centralized logger access for the fulfillment steps.

By default, uses Python's standard logging under the 'fulfillment'
namespace. A different logger (structlog, loguru, ...) can be plugged in
process-wide with set_logger().

Usage:
    from fulfillment.core.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Message")
"""

import logging
from typing import Any

# Global logger override - None means standard logging
_custom_logger: Any = None


def set_logger(logger: Any) -> None:
    """
    Set a custom logger for all fulfillment components.

    Args:
        logger: A logger instance supporting debug/info/warning/error/exception.
                Pass None to go back to standard logging.
    """
    global _custom_logger
    _custom_logger = logger


def get_logger(name: str = "fulfillment") -> Any:
    """
    Get a logger instance.

    Returns the logger set via set_logger() if any, otherwise a standard
    Python logger with the given name.
    """
    if _custom_logger is not None:
        return _custom_logger

    logger = logging.getLogger(name)

    # Ensure we have at least a NullHandler to avoid "No handler found" warnings
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger

