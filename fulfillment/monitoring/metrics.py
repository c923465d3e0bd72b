"""
Prometheus metrics for the fulfillment steps and the courier worker.

Exposes:
    - fulfillment_courier_assignments_total: assignments by outcome
      (success, failure, duplicate, rejected)
    - fulfillment_ledger_operations_total: ledger step calls by operation
      and outcome (ok or the error kind)
    - fulfillment_assignment_duration_seconds: time from receipt to resume

Requirements:
    pip install prometheus-client
"""

import logging
from typing import Any

try:
    from prometheus_client import REGISTRY, Counter, Histogram

    PROMETHEUS_AVAILABLE = True
except ImportError:  # pragma: no cover
    PROMETHEUS_AVAILABLE = False
    REGISTRY: Any = None  # type: ignore[no-redef]
    Counter: Any = None  # type: ignore[no-redef]
    Histogram: Any = None  # type: ignore[no-redef]


logger = logging.getLogger(__name__)


class FulfillmentMetrics:
    """
    Prometheus collector for fulfillment activity.

    Pass a dedicated ``registry`` when more than one instance lives in the
    same process (tests), since metric names must be unique per registry.
    """

    def __init__(self, prefix: str = "fulfillment", registry: Any = None):
        if not PROMETHEUS_AVAILABLE:
            logger.warning(
                "prometheus-client not installed. Metrics will not be collected. "
                "Install with: pip install prometheus-client"
            )
            self._enabled = False
            return

        self._enabled = True
        registry = registry if registry is not None else REGISTRY

        self._assignments_total = Counter(
            f"{prefix}_courier_assignments_total",
            "Courier assignment requests handled, by outcome",
            ["outcome"],
            registry=registry,
        )

        self._ledger_operations_total = Counter(
            f"{prefix}_ledger_operations_total",
            "Ledger step operations, by operation and outcome",
            ["operation", "outcome"],
            registry=registry,
        )

        self._assignment_duration = Histogram(
            f"{prefix}_assignment_duration_seconds",
            "Time from receiving an assignment request to resuming the saga",
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
            registry=registry,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    def record_assignment(self, outcome: str, duration: float | None = None) -> None:
        """Record one handled assignment request."""
        if not self._enabled:
            return

        self._assignments_total.labels(outcome=outcome).inc()
        if duration is not None:
            self._assignment_duration.observe(duration)

    def record_ledger_operation(self, operation: str, outcome: str = "ok") -> None:
        """Record one ledger step call."""
        if not self._enabled:
            return

        self._ledger_operations_total.labels(operation=operation, outcome=outcome).inc()


def is_prometheus_available() -> bool:
    """Check if prometheus-client is installed."""
    return PROMETHEUS_AVAILABLE
