"""
Logging and metrics helpers for the fulfillment steps.
"""

from fulfillment.monitoring.logging import (
    OrderContextFilter,
    OrderJsonFormatter,
    bind_order_context,
    order_context,
    setup_fulfillment_logging,
    short_token,
)
from fulfillment.monitoring.metrics import FulfillmentMetrics, is_prometheus_available

__all__ = [
    "FulfillmentMetrics",
    "OrderContextFilter",
    "OrderJsonFormatter",
    "bind_order_context",
    "is_prometheus_available",
    "order_context",
    "setup_fulfillment_logging",
    "short_token",
]
