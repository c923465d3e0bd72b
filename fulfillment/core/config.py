"""
FulfillmentConfig - settings for wiring the fulfillment steps together.

Example:
    >>> from fulfillment.core.config import FulfillmentConfig
    >>>
    >>> # Development defaults (in-memory ledger, no metrics)
    >>> config = FulfillmentConfig()
    >>>
    >>> # From environment / .env
    >>> config = FulfillmentConfig.from_env()
    >>> config.configure_logging()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fulfillment.core.env import EnvManager

if TYPE_CHECKING:
    from fulfillment.ledger.base import LedgerStore
    from fulfillment.monitoring.metrics import FulfillmentMetrics

logger = logging.getLogger(__name__)

DEFAULT_COURIER = "courier@fulfillment.local"


@dataclass
class FulfillmentConfig:
    """
    Settings for the fulfillment steps.

    Attributes:
        ledger_url: Ledger store URL (``memory://`` or ``redis://...``)
        key_prefix: Key prefix for shared ledger backends
        courier: Courier identity reported to the orchestrator on assignment
        redeem_max_attempts: Compare-and-set attempts for a points redemption
        marker_ttl_seconds: How long idempotency markers are kept
        metrics: Collect Prometheus metrics
        aws_region: Region of the workflow orchestrator
        log_level: Level for the ``fulfillment`` logger namespace
        json_logs: Emit JSON log lines
    """

    ledger_url: str = "memory://"
    key_prefix: str = "fulfillment:"
    courier: str = DEFAULT_COURIER
    redeem_max_attempts: int = 3
    marker_ttl_seconds: int = 7 * 24 * 3600
    metrics: bool = False
    aws_region: str = "us-east-1"
    log_level: str = "INFO"
    json_logs: bool = True

    def __post_init__(self) -> None:
        if self.redeem_max_attempts < 1:
            msg = f"redeem_max_attempts must be >= 1, got {self.redeem_max_attempts}"
            raise ValueError(msg)
        if not self.courier:
            msg = "courier must not be empty"
            raise ValueError(msg)

    @classmethod
    def from_env(cls, env: EnvManager | None = None) -> FulfillmentConfig:
        """
        Build configuration from environment variables.

        Environment variables:
            FULFILLMENT_LEDGER_URL: Ledger store URL
            FULFILLMENT_KEY_PREFIX: Key prefix for the ledger backend
            FULFILLMENT_COURIER: Courier identity
            FULFILLMENT_REDEEM_MAX_ATTEMPTS: Redemption compare-and-set attempts
            FULFILLMENT_MARKER_TTL_SECONDS: Idempotency marker lifetime
            FULFILLMENT_METRICS: Enable Prometheus metrics (true/false)
            FULFILLMENT_JSON_LOGS: JSON log output (true/false)
            AWS_REGION: Orchestrator region
            LOG_LEVEL: Logging level
        """
        env = env or EnvManager()
        defaults = cls()
        return cls(
            ledger_url=env.get("FULFILLMENT_LEDGER_URL", defaults.ledger_url),
            key_prefix=env.get("FULFILLMENT_KEY_PREFIX", defaults.key_prefix),
            courier=env.get("FULFILLMENT_COURIER", defaults.courier),
            redeem_max_attempts=env.get_int(
                "FULFILLMENT_REDEEM_MAX_ATTEMPTS", defaults.redeem_max_attempts
            ),
            marker_ttl_seconds=env.get_int(
                "FULFILLMENT_MARKER_TTL_SECONDS", defaults.marker_ttl_seconds
            ),
            metrics=env.get_bool("FULFILLMENT_METRICS", defaults.metrics),
            aws_region=env.get("AWS_REGION", defaults.aws_region),
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
            json_logs=env.get_bool("FULFILLMENT_JSON_LOGS", defaults.json_logs),
        )

    def create_ledger_store(self) -> LedgerStore:
        """Build the ledger store this configuration points at."""
        from fulfillment.ledger.factory import create_ledger_store

        if self.ledger_url.startswith("memory"):
            return create_ledger_store(self.ledger_url)

        logger.debug(f"Using ledger store at {self.ledger_url.split('@')[-1]}")
        return create_ledger_store(
            self.ledger_url, key_prefix=self.key_prefix, marker_ttl=self.marker_ttl_seconds
        )

    def configure_logging(self) -> logging.Logger:
        """Install the console handler for the ``fulfillment`` namespace."""
        from fulfillment.monitoring.logging import setup_fulfillment_logging

        return setup_fulfillment_logging(log_level=self.log_level, json_format=self.json_logs)

    def create_metrics(self) -> FulfillmentMetrics | None:
        """Build the metrics collector, or None when metrics are off."""
        if not self.metrics:
            return None

        from fulfillment.monitoring.metrics import FulfillmentMetrics

        return FulfillmentMetrics()
