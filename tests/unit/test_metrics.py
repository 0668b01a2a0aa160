"""
Unit tests for Prometheus metrics
"""

import pytest
from prometheus_client import CollectorRegistry, generate_latest

from flash_arbitrage.metrics import EngineMetrics, get_metrics, initialize_metrics


@pytest.fixture
def test_registry():
    """Create a test-specific registry"""
    return CollectorRegistry()


@pytest.fixture
def metrics(test_registry):
    """Create EngineMetrics instance with test registry"""
    return EngineMetrics(test_registry)


class TestEngineMetrics:
    def test_initialization(self, metrics):
        assert metrics.registry is not None
        assert hasattr(metrics, "executions_total")
        assert hasattr(metrics, "failures_total")
        assert hasattr(metrics, "realized_profit_total")

    def test_execution_success(self, metrics):
        metrics.record_execution_succeeded("fixed_fee", "0xusdc", 2, 0.01)

        assert (
            metrics.registry.get_sample_value(
                "flash_arbitrage_executions_total",
                {"variant": "fixed_fee", "outcome": "success"},
            )
            == 1.0
        )
        assert (
            metrics.registry.get_sample_value(
                "flash_arbitrage_realized_profit_total",
                {"variant": "fixed_fee", "base_asset": "0xusdc"},
            )
            == 2.0
        )

    def test_success_without_profit_floor(self, metrics):
        metrics.record_execution_succeeded("path_slippage", "0xusdc", None, 0.01)
        summary = metrics.get_metrics_summary()
        assert summary["successes"] == 1
        assert summary["total_profit"] == 0

    def test_execution_failure(self, metrics):
        metrics.record_execution_failed("fixed_fee", "InsufficientRepaymentError", 0.02)

        assert (
            metrics.registry.get_sample_value(
                "flash_arbitrage_failures_total",
                {"variant": "fixed_fee", "reason": "InsufficientRepaymentError"},
            )
            == 1.0
        )
        assert metrics.get_metrics_summary()["failures"] == 1

    def test_entry_point_metrics(self, metrics):
        metrics.record_loan_requested("fixed_fee")
        metrics.record_withdrawal("0xweth", unwrapped=True)

        output = metrics.render().decode("utf-8")
        assert "flash_arbitrage_loan_requests_total" in output
        assert 'unwrapped="true"' in output
        assert metrics.content_type.startswith("text/plain")

    def test_render_matches_registry(self, metrics):
        metrics.record_loan_requested("fixed_fee")
        assert metrics.render() == generate_latest(metrics.registry)


class TestGlobalMetrics:
    def test_initialize_replaces_global(self):
        registry = CollectorRegistry()
        metrics = initialize_metrics(registry)
        assert get_metrics() is metrics
        assert metrics.registry is registry
