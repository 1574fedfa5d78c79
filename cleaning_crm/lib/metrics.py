"""
Prometheus-compatible metrics for observability.

Tracks:
- Customer operations (by operation and outcome)
- Authentication failures (by reason)

Usage:
    from cleaning_crm.lib.metrics import get_metrics_collector

    metrics = get_metrics_collector()
    metrics.increment_operation("create", "success")
    metrics.increment_auth_failures("missing_token")

    # Export for Prometheus
    prometheus_output = metrics.export_prometheus()
"""

from typing import Dict, Tuple
from threading import Lock


class MetricsCollector:
    """
    Prometheus-style metrics collector for the customer API.

    Counters:
    - customer_operations_total: Customer reads/writes (labels: operation, outcome)
    - auth_failures_total: Rejected requests (labels: reason)

    Thread-safe for concurrent increments.
    """

    HELP_TEXTS = {
        "customer_operations_total": "Total number of customer operations by outcome",
        "auth_failures_total": "Total number of requests rejected by the auth gate",
    }

    def __init__(self):
        self._lock = Lock()

        # Counters: key = (metric_name, labels_tuple), value = count
        self._counters: Dict[Tuple[str, Tuple[Tuple[str, str], ...]], int] = {}

    def _get_counter_key(self, metric_name: str, labels: Dict[str, str]) -> Tuple[str, Tuple[Tuple[str, str], ...]]:
        """Generate unique key for counter with sorted labels."""
        sorted_labels = tuple(sorted(labels.items()))
        return (metric_name, sorted_labels)

    def _increment(self, metric_name: str, labels: Dict[str, str], amount: int = 1):
        """Thread-safe increment of counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + amount

    def increment_operation(self, operation: str, outcome: str, amount: int = 1):
        """
        Increment customer operations counter.

        Args:
            operation: list, get, create, update, delete
            outcome: success, not_found, invalid, conflict, blocked, error
            amount: Increment amount (default 1)
        """
        labels = {
            "operation": operation.lower(),
            "outcome": outcome.lower(),
        }
        self._increment("customer_operations_total", labels, amount)

    def increment_auth_failures(self, reason: str, amount: int = 1):
        """Increment requests rejected for missing or invalid credentials."""
        self._increment("auth_failures_total", {"reason": reason.lower()}, amount)

    def export_prometheus(self) -> str:
        """
        Export all metrics in Prometheus text format.

        Returns:
            Prometheus-compatible text output
        """
        output_lines = []

        # Group counters by metric name
        metrics_by_name: Dict[str, list] = {}
        with self._lock:
            for (metric_name, labels_tuple), value in self._counters.items():
                metrics_by_name.setdefault(metric_name, []).append((dict(labels_tuple), value))

        for metric_name in sorted(metrics_by_name.keys()):
            help_text = self.HELP_TEXTS.get(metric_name, "Counter metric")
            output_lines.append(f"# HELP {metric_name} {help_text}")
            output_lines.append(f"# TYPE {metric_name} counter")

            for labels_dict, value in sorted(metrics_by_name[metric_name], key=lambda x: str(x[0])):
                labels_str = ",".join([f'{k}="{v}"' for k, v in sorted(labels_dict.items())])
                output_lines.append(f"{metric_name}{{{labels_str}}} {value}")

            output_lines.append("")  # Blank line between metrics

        return "\n".join(output_lines)

    def get_counter_value(self, metric_name: str, labels: Dict[str, str]) -> int:
        """Get current value of a specific counter."""
        key = self._get_counter_key(metric_name, labels)
        with self._lock:
            return self._counters.get(key, 0)

    def reset_all(self):
        """Reset all counters (for testing)."""
        with self._lock:
            self._counters.clear()


# Global singleton instance
_metrics_collector: MetricsCollector | None = None
_metrics_lock = Lock()


def get_metrics_collector() -> MetricsCollector:
    """
    Get global metrics collector singleton.

    Returns:
        MetricsCollector instance
    """
    global _metrics_collector
    if _metrics_collector is None:
        with _metrics_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def reset_metrics():
    """Reset global metrics collector (for testing)."""
    with _metrics_lock:
        if _metrics_collector is not None:
            _metrics_collector.reset_all()
