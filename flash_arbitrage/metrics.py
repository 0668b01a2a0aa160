"""
Prometheus Metrics for the Flash Arbitrage Engine

Tracks callback executions, failure reasons, realized profit, loan requests
and treasury withdrawals.
"""

import logging
import threading
from typing import Any, Dict, Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from .constants import ExecutionOutcome

logger = logging.getLogger(__name__)


class EngineMetrics:
    """
    Engine metrics collection and exposure

    Provides Prometheus-compatible metrics for:
    - Callback executions by strategy variant and outcome
    - Failures by error type
    - Realized profit and leg durations
    - Loan requests and withdrawals
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """Initialize metrics with custom registry or default"""
        self.registry = registry or REGISTRY
        self._initialize_metrics()

        self._lock = threading.RLock()
        self._summary = {
            "executions": 0,
            "successes": 0,
            "failures": 0,
            "total_profit": 0,
            "loan_requests": 0,
            "withdrawals": 0,
        }

    def _initialize_metrics(self):
        """Initialize all Prometheus metrics"""

        # === EXECUTION METRICS ===
        self.executions_total = Counter(
            "flash_arbitrage_executions_total",
            "Total flash loan callback executions",
            ["variant", "outcome"],
            registry=self.registry,
        )

        self.failures_total = Counter(
            "flash_arbitrage_failures_total",
            "Total failed executions by error type",
            ["variant", "reason"],
            registry=self.registry,
        )

        self.execution_duration_seconds = Histogram(
            "flash_arbitrage_execution_duration_seconds",
            "Wall-clock duration of a callback execution",
            ["variant"],
            buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=self.registry,
        )

        # === P&L METRICS ===
        self.realized_profit_total = Counter(
            "flash_arbitrage_realized_profit_total",
            "Cumulative realized profit in raw base asset units",
            ["variant", "base_asset"],
            registry=self.registry,
        )

        self.last_profit = Gauge(
            "flash_arbitrage_last_profit",
            "Realized profit of the last successful execution",
            ["variant", "base_asset"],
            registry=self.registry,
        )

        # === ENTRY POINT METRICS ===
        self.loan_requests_total = Counter(
            "flash_arbitrage_loan_requests_total",
            "Total flash loans requested by the owner",
            ["variant"],
            registry=self.registry,
        )

        self.withdrawals_total = Counter(
            "flash_arbitrage_withdrawals_total",
            "Total treasury withdrawals",
            ["token", "unwrapped"],
            registry=self.registry,
        )

    def record_execution_succeeded(
        self,
        variant: str,
        base_asset: str,
        profit: Optional[int],
        duration_seconds: float,
    ):
        """Record a callback that repaid the loan"""
        self.executions_total.labels(variant=variant, outcome=ExecutionOutcome.SUCCESS.value).inc()
        self.execution_duration_seconds.labels(variant=variant).observe(duration_seconds)
        if profit is not None:
            self.realized_profit_total.labels(variant=variant, base_asset=base_asset).inc(
                profit
            )
            self.last_profit.labels(variant=variant, base_asset=base_asset).set(profit)

        with self._lock:
            self._summary["executions"] += 1
            self._summary["successes"] += 1
            self._summary["total_profit"] += profit or 0

    def record_execution_failed(self, variant: str, reason: str, duration_seconds: float):
        """Record a callback that aborted"""
        self.executions_total.labels(variant=variant, outcome=ExecutionOutcome.FAILED.value).inc()
        self.failures_total.labels(variant=variant, reason=reason).inc()
        self.execution_duration_seconds.labels(variant=variant).observe(duration_seconds)

        with self._lock:
            self._summary["executions"] += 1
            self._summary["failures"] += 1

    def record_loan_requested(self, variant: str):
        """Record an owner-initiated flash loan"""
        self.loan_requests_total.labels(variant=variant).inc()
        with self._lock:
            self._summary["loan_requests"] += 1

    def record_withdrawal(self, token: str, unwrapped: bool):
        """Record a treasury withdrawal"""
        self.withdrawals_total.labels(token=token, unwrapped=str(unwrapped).lower()).inc()
        with self._lock:
            self._summary["withdrawals"] += 1

    def render(self) -> bytes:
        """Prometheus text exposition of this registry"""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

    def get_metrics_summary(self) -> Dict[str, Any]:
        """Get summary of recorded activity"""
        with self._lock:
            return dict(self._summary)


# Global metrics instance (singleton pattern)
_global_metrics: Optional[EngineMetrics] = None


def get_metrics() -> EngineMetrics:
    """Get or create global metrics instance"""
    global _global_metrics
    if _global_metrics is None:
        _global_metrics = EngineMetrics()
    return _global_metrics


def initialize_metrics(registry: Optional[CollectorRegistry] = None) -> EngineMetrics:
    """Initialize global metrics with custom registry"""
    global _global_metrics
    _global_metrics = EngineMetrics(registry)
    return _global_metrics
