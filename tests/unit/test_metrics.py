"""
Unit tests for metrics collection and Prometheus export.
"""

import pytest
from cleaning_crm.lib.metrics import MetricsCollector, get_metrics_collector, reset_metrics


@pytest.fixture
def metrics():
    """Fresh metrics collector for each test."""
    collector = MetricsCollector()
    return collector


@pytest.mark.unit
def test_metrics_collector_initialization(metrics):
    """Test metrics collector initializes with empty counters."""
    output = metrics.export_prometheus()
    assert output == ""  # No metrics yet


@pytest.mark.unit
def test_increment_operation_basic(metrics):
    metrics.increment_operation("create", "success")

    value = metrics.get_counter_value(
        "customer_operations_total",
        {"operation": "create", "outcome": "success"}
    )
    assert value == 1


@pytest.mark.unit
def test_increment_operation_multiple(metrics):
    """Amounts accumulate on the same label set."""
    metrics.increment_operation("list", "success", amount=5)
    metrics.increment_operation("list", "success", amount=3)

    value = metrics.get_counter_value(
        "customer_operations_total",
        {"operation": "list", "outcome": "success"}
    )
    assert value == 8


@pytest.mark.unit
def test_increment_operation_different_labels(metrics):
    """Test counters are separate for different label combinations."""
    metrics.increment_operation("delete", "success")
    metrics.increment_operation("delete", "blocked")
    metrics.increment_operation("delete", "blocked")

    success = metrics.get_counter_value(
        "customer_operations_total", {"operation": "delete", "outcome": "success"}
    )
    blocked = metrics.get_counter_value(
        "customer_operations_total", {"operation": "delete", "outcome": "blocked"}
    )

    assert success == 1
    assert blocked == 2


@pytest.mark.unit
def test_labels_are_lowercased(metrics):
    metrics.increment_operation("UPDATE", "Conflict")

    assert metrics.get_counter_value(
        "customer_operations_total", {"operation": "update", "outcome": "conflict"}
    ) == 1


@pytest.mark.unit
def test_increment_auth_failures(metrics):
    metrics.increment_auth_failures("missing_token")
    metrics.increment_auth_failures("invalid_token")
    metrics.increment_auth_failures("invalid_token")

    assert metrics.get_counter_value("auth_failures_total", {"reason": "missing_token"}) == 1
    assert metrics.get_counter_value("auth_failures_total", {"reason": "invalid_token"}) == 2


@pytest.mark.unit
def test_get_counter_value_unknown_is_zero(metrics):
    assert metrics.get_counter_value("customer_operations_total", {"operation": "get"}) == 0


@pytest.mark.unit
def test_export_prometheus_format(metrics):
    """Export groups samples under HELP and TYPE lines."""
    metrics.increment_operation("create", "success", amount=2)
    metrics.increment_auth_failures("missing_token")

    output = metrics.export_prometheus()

    assert "# HELP auth_failures_total Total number of requests rejected by the auth gate" in output
    assert "# TYPE auth_failures_total counter" in output
    assert 'auth_failures_total{reason="missing_token"} 1' in output
    assert "# TYPE customer_operations_total counter" in output
    assert 'customer_operations_total{operation="create",outcome="success"} 2' in output

    # Metric families are sorted by name
    assert output.index("auth_failures_total") < output.index("customer_operations_total")


@pytest.mark.unit
def test_reset_all(metrics):
    metrics.increment_operation("get", "success")
    metrics.reset_all()

    assert metrics.export_prometheus() == ""


@pytest.mark.unit
def test_global_collector_is_singleton():
    """get_metrics_collector always returns the same instance."""
    assert get_metrics_collector() is get_metrics_collector()


@pytest.mark.unit
def test_reset_metrics_clears_global_collector():
    collector = get_metrics_collector()
    collector.increment_operation("list", "success")

    reset_metrics()

    assert collector.get_counter_value(
        "customer_operations_total", {"operation": "list", "outcome": "success"}
    ) == 0
