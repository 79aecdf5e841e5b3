"""
Observability Validation Test

This test validates the observability stack:
1. Metrics collection works (counters, per-stage timings, summary)
2. Structured logging with correlation IDs works
3. Correlation context is scoped and restored
4. Settings are read from the environment

Pass criteria: one correlation id threads an order's request, ERP send and
webhook through the logs and the audit trail.
"""

import json
import logging
from pathlib import Path

import pytest


def test_observability_imports():
    """Verify all observability modules import correctly."""
    from core.observability import (
        MetricsCollector, get_metrics, increment, record_processing_time,
        get_logger, CorrelationContext, with_correlation, get_correlation_id,
        configure_logging, log_integration_event,
    )
    assert MetricsCollector is not None
    assert get_metrics is not None
    assert CorrelationContext is not None


class TestMetricsCollector:
    """Test the metrics collection system."""

    def test_singleton_instance(self):
        """MetricsCollector returns same instance."""
        from core.observability.metrics import MetricsCollector, get_metrics
        assert MetricsCollector.instance() is MetricsCollector.instance()
        assert get_metrics() is MetricsCollector.instance()

    def test_counters(self):
        """Named counters start at zero and accumulate."""
        from core.observability import metrics
        mc = metrics.get_metrics()

        assert mc.get_counter(metrics.ERP_ACKED) == 0
        metrics.increment(metrics.ERP_ACKED)
        metrics.increment(metrics.ERP_ACKED, 2)
        metrics.increment(metrics.ERP_FAILED)

        assert mc.get_counter(metrics.ERP_ACKED) == 3
        assert mc.get_summary()["counters"] == {"erp.acked": 3, "erp.failed": 1}

    def test_processing_time_stats(self):
        """Average and p95 per stage."""
        from core.observability import metrics
        mc = metrics.get_metrics()

        for duration in range(1, 101):
            metrics.record_processing_time(metrics.STAGE_ERP_SEND, float(duration))

        stats = mc.get_timing_stats(metrics.STAGE_ERP_SEND)
        assert stats["sample_count"] == 100
        assert stats["average_ms"] == 50.5
        assert stats["p95_ms"] == 96.0

        summary = mc.get_summary()
        assert summary["timings"]["by_stage"]["erp.send"]["average_ms"] == 50.5
        assert summary["timings"]["overall"]["p95_ms"] == 96.0

    def test_empty_stage(self):
        """Unknown stages report zeros."""
        from core.observability.metrics import get_metrics
        stats = get_metrics().get_timing_stats("missing")
        assert stats == {"average_ms": 0.0, "p95_ms": 0.0, "sample_count": 0}

    def test_samples_are_bounded(self):
        """Only the most recent samples are kept."""
        from core.observability.metrics import TimingMetrics
        timings = TimingMetrics(max_samples=3)
        for duration in (1.0, 2.0, 3.0, 4.0):
            timings.add_sample(duration, "stage")
        assert timings.samples == [2.0, 3.0, 4.0]
        assert timings.by_stage["stage"] == [2.0, 3.0, 4.0]

    def test_reset(self):
        """Reset clears counters and timings."""
        from core.observability import metrics
        metrics.increment(metrics.ORDERS_CREATED)
        metrics.record_processing_time(metrics.STAGE_ERP_SEND, 10.0)

        metrics.get_metrics().reset()

        summary = metrics.get_metrics().get_summary()
        assert summary["counters"] == {}
        assert summary["timings"]["by_stage"] == {}


class TestCorrelationContext:
    """Test correlation context propagation."""

    def test_with_correlation_sets_and_restores(self):
        """Context is visible inside the block and restored after."""
        from core.observability.logging import get_correlation_context, get_correlation_id, with_correlation

        assert get_correlation_id() is None
        with with_correlation(correlation_id="abc123def456", order_number="ORD-1"):
            assert get_correlation_id() == "abc123def456"
            with with_correlation(order_id=7):
                ctx = get_correlation_context()
                assert ctx.correlation_id == "abc123def456"
                assert ctx.order_id == 7
            assert get_correlation_context().order_id is None
        assert get_correlation_id() is None

    def test_restored_after_exception(self):
        """An exception inside the block still restores the context."""
        from core.observability.logging import get_correlation_id, with_correlation

        with pytest.raises(RuntimeError):
            with with_correlation(correlation_id="boom"):
                raise RuntimeError("fail")
        assert get_correlation_id() is None

    def test_merge_ignores_none(self):
        """None values never overwrite existing ones."""
        from core.observability.logging import CorrelationContext

        ctx = CorrelationContext(correlation_id="c1").merge(correlation_id=None, order_number="ORD-9")
        assert ctx.to_dict() == {"correlation_id": "c1", "order_number": "ORD-9"}


def _record(msg="Sending order", level=logging.INFO, extra_fields=None, exc_info=None):
    record = logging.LogRecord("api.routes.orders", level, __file__, 1, msg, (), exc_info)
    if extra_fields is not None:
        record.extra_fields = extra_fields
    return record


class TestFormatters:
    """Test the JSON and human-readable formatters."""

    def test_structured_formatter_includes_context(self):
        """JSON output carries correlation ids and extra fields."""
        from core.observability.logging import StructuredFormatter, with_correlation

        with with_correlation(correlation_id="a1b2c3d4e5f6", order_number="ORD-1"):
            line = StructuredFormatter().format(_record(extra_fields={"duration_ms": 312.4}))

        data = json.loads(line)
        assert data["level"] == "INFO"
        assert data["logger"] == "api.routes.orders"
        assert data["message"] == "Sending order"
        assert data["correlation_id"] == "a1b2c3d4e5f6"
        assert data["order_number"] == "ORD-1"
        assert data["duration_ms"] == 312.4
        assert "exception" not in data

    def test_structured_formatter_exception(self):
        """Exceptions are rendered into the JSON payload."""
        import sys
        from core.observability.logging import StructuredFormatter

        try:
            raise ValueError("bad payload")
        except ValueError:
            line = StructuredFormatter().format(_record(level=logging.ERROR, exc_info=sys.exc_info()))

        assert "ValueError: bad payload" in json.loads(line)["exception"]

    def test_human_readable_formatter(self):
        """Readable output shows the correlation id and order."""
        from core.observability.logging import HumanReadableFormatter, with_correlation

        with with_correlation(correlation_id="abc", order_id=42):
            line = HumanReadableFormatter().format(_record(extra_fields={"status": "Acked"}))

        assert "[INFO ]" in line
        assert "[abc/order:42]" in line
        assert line.endswith("Sending order status=Acked")

    def test_human_readable_without_context(self):
        """No context renders a dash."""
        from core.observability.logging import HumanReadableFormatter
        assert "[-]" in HumanReadableFormatter().format(_record())


class TestCorrelatedLogger:
    """Test the logger wrapper."""

    @pytest.fixture
    def captured(self):
        records = []

        class ListHandler(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = ListHandler()
        base = logging.getLogger("tests.observability")
        base.addHandler(handler)
        base.setLevel(logging.DEBUG)
        yield records
        base.removeHandler(handler)

    def test_extra_fields_attached(self, captured):
        """extra_fields lands on the record."""
        from core.observability.logging import get_logger

        get_logger("tests.observability").info("Order created", extra_fields={"items": 2})

        assert captured[0].getMessage() == "Order created"
        assert captured[0].extra_fields == {"items": 2}

    def test_exception_carries_exc_info(self, captured):
        """logger.exception records the active exception."""
        from core.observability.logging import get_logger

        try:
            raise KeyError("missing")
        except KeyError:
            get_logger("tests.observability").exception("Lookup failed")

        assert captured[0].levelno == logging.ERROR
        assert captured[0].exc_info[0] is KeyError

    def test_log_integration_event(self):
        """Integration events go to the api.integration logger."""
        from core.observability.logging import log_integration_event

        records = []

        class ListHandler(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = ListHandler()
        target = logging.getLogger("api.integration")
        target.addHandler(handler)
        previous = target.level
        target.setLevel(logging.INFO)
        try:
            log_integration_event("ERP send completed", attempt_id=3, status="Acked")
        finally:
            target.removeHandler(handler)
            target.setLevel(previous)

        assert records[0].extra_fields == {"attempt_id": 3, "status": "Acked"}


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        """Unset variables fall back to defaults."""
        from core import config

        monkeypatch.setattr(config, "load_env_file", lambda *args, **kwargs: None)
        for name in ("ORDER_DB_PATH", "API_KEY", "ERP_API_KEY", "REQUIRE_API_KEY", "ERP_CONNECTOR",
                     "ERP_FORCE_FAIL", "LOG_LEVEL", "PORT", "SEED_DATA"):
            monkeypatch.delenv(name, raising=False)

        settings = config.Settings.from_env()
        assert settings.db_path == config.DEFAULT_DB_PATH
        assert settings.api_key is None
        assert settings.erp_api_key is None
        assert settings.require_api_key is True
        assert settings.erp_connector == "simulator"
        assert settings.erp_force_fail == []
        assert settings.port == 8080
        assert settings.seed_data is False

    def test_overrides(self, monkeypatch, tmp_path):
        """Variables are parsed into typed settings."""
        from core import config

        monkeypatch.setattr(config, "load_env_file", lambda *args, **kwargs: None)
        monkeypatch.setenv("ORDER_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("API_KEY", "secret")
        monkeypatch.setenv("ERP_API_KEY", "erp-secret")
        monkeypatch.setenv("REQUIRE_API_KEY", "no")
        monkeypatch.setenv("ERP_FAILURE_RATE", "0.25")
        monkeypatch.setenv("ERP_FORCE_FAIL", "BAD, ,WORSE")
        monkeypatch.setenv("LOG_LEVEL", "debug")
        monkeypatch.setenv("SEED_DATA", "true")

        settings = config.Settings.from_env()
        assert settings.db_path == Path(tmp_path / "x.db")
        assert settings.api_key == "secret"
        assert settings.erp_api_key == "erp-secret"
        assert settings.require_api_key is False
        assert settings.erp_failure_rate == 0.25
        assert settings.erp_force_fail == ["BAD", "WORSE"]
        assert settings.log_level == "DEBUG"
        assert settings.seed_data is True

    def test_invalid_number(self, monkeypatch):
        """Non-numeric values raise ValueError."""
        from core import config

        monkeypatch.setattr(config, "load_env_file", lambda *args, **kwargs: None)
        monkeypatch.setenv("PORT", "eighty")
        with pytest.raises(ValueError):
            config.Settings.from_env()
