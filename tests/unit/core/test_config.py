"""
Tests for FulfillmentConfig and EnvManager
"""

import logging
from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from fulfillment.core.config import DEFAULT_COURIER, FulfillmentConfig
from fulfillment.core.env import EnvManager
from fulfillment.ledger.memory import InMemoryLedgerStore
from fulfillment.monitoring.logging import OrderJsonFormatter
from fulfillment.monitoring.metrics import FulfillmentMetrics

ENV_KEYS = [
    "FULFILLMENT_LEDGER_URL",
    "FULFILLMENT_KEY_PREFIX",
    "FULFILLMENT_COURIER",
    "FULFILLMENT_REDEEM_MAX_ATTEMPTS",
    "FULFILLMENT_MARKER_TTL_SECONDS",
    "FULFILLMENT_METRICS",
    "FULFILLMENT_JSON_LOGS",
    "AWS_REGION",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so teardown also removes values loaded from .env files
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestFulfillmentConfig:
    def test_defaults(self):
        config = FulfillmentConfig()
        assert config.ledger_url == "memory://"
        assert config.courier == DEFAULT_COURIER
        assert config.redeem_max_attempts == 3
        assert config.metrics is False

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError, match="redeem_max_attempts"):
            FulfillmentConfig(redeem_max_attempts=0)

    def test_rejects_empty_courier(self):
        with pytest.raises(ValueError, match="courier"):
            FulfillmentConfig(courier="")

    def test_from_env(self, clean_env, tmp_path):
        clean_env.setenv("FULFILLMENT_LEDGER_URL", "redis://cache:6379/2")
        clean_env.setenv("FULFILLMENT_COURIER", "dispatch@example.com")
        clean_env.setenv("FULFILLMENT_REDEEM_MAX_ATTEMPTS", "5")
        clean_env.setenv("FULFILLMENT_METRICS", "true")
        clean_env.setenv("AWS_REGION", "eu-west-1")
        clean_env.setenv("LOG_LEVEL", "debug")

        config = FulfillmentConfig.from_env(EnvManager(project_root=tmp_path))

        assert config.ledger_url == "redis://cache:6379/2"
        assert config.courier == "dispatch@example.com"
        assert config.redeem_max_attempts == 5
        assert config.metrics is True
        assert config.aws_region == "eu-west-1"
        assert config.log_level == "DEBUG"

    def test_from_env_defaults(self, clean_env, tmp_path):
        config = FulfillmentConfig.from_env(EnvManager(project_root=tmp_path))
        assert config == FulfillmentConfig()

    def test_from_env_ignores_bad_integers(self, clean_env, tmp_path):
        clean_env.setenv("FULFILLMENT_REDEEM_MAX_ATTEMPTS", "lots")
        config = FulfillmentConfig.from_env(EnvManager(project_root=tmp_path))
        assert config.redeem_max_attempts == 3

    def test_creates_memory_store(self):
        assert isinstance(FulfillmentConfig().create_ledger_store(), InMemoryLedgerStore)

    def test_configure_logging(self):
        namespace = logging.getLogger("fulfillment")
        handlers, level = namespace.handlers[:], namespace.level
        try:
            logger = FulfillmentConfig(log_level="WARNING", json_logs=False).configure_logging()
            assert logger.level == logging.WARNING
            assert not isinstance(logger.handlers[0].formatter, OrderJsonFormatter)
        finally:
            namespace.handlers = handlers
            namespace.setLevel(level)

    def test_metrics_off_by_default(self):
        assert FulfillmentConfig().create_metrics() is None

    def test_metrics_on(self):
        with patch("fulfillment.monitoring.metrics.REGISTRY", CollectorRegistry()):
            metrics = FulfillmentConfig(metrics=True).create_metrics()
        assert isinstance(metrics, FulfillmentMetrics)


class TestEnvManager:
    def test_loads_dotenv_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("FULFILLMENT_COURIER=from-dotenv\n")

        env = EnvManager(project_root=tmp_path)

        assert env.get("FULFILLMENT_COURIER") == "from-dotenv"

    def test_missing_dotenv_file(self, tmp_path):
        env = EnvManager(project_root=tmp_path, auto_load=False)
        assert env.load() is False

    def test_required_variable(self, clean_env, tmp_path):
        env = EnvManager(project_root=tmp_path)
        with pytest.raises(ValueError, match="FULFILLMENT_COURIER"):
            env.get("FULFILLMENT_COURIER", required=True)

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [("true", True), ("1", True), ("on", True), ("false", False), ("off", False)],
    )
    def test_get_bool(self, clean_env, tmp_path, raw, expected):
        clean_env.setenv("FULFILLMENT_METRICS", raw)
        env = EnvManager(project_root=tmp_path)
        assert env.get_bool("FULFILLMENT_METRICS") is expected

    def test_get_bool_default(self, clean_env, tmp_path):
        env = EnvManager(project_root=tmp_path)
        assert env.get_bool("FULFILLMENT_METRICS", default=True) is True
