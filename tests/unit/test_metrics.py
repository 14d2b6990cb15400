"""
Unit tests for Prometheus metrics

Each test uses its own CollectorRegistry so metric names never collide
with the process-wide REGISTRY.
"""

from unittest.mock import patch

import pytest
from prometheus_client import CollectorRegistry

from utils.metrics import MetricsPublisher, ReconciliationMetrics, ReplicationMetrics


@pytest.fixture
def registry():
    return CollectorRegistry()


class TestMetricsPublisher:
    """Test MetricsPublisher class"""

    def test_init_with_default_port(self, registry):
        publisher = MetricsPublisher(registry=registry)

        assert publisher.port == 9091
        assert publisher.registry is registry
        assert not publisher.is_started()

    @patch("utils.metrics.publisher.start_http_server")
    def test_start_successful(self, mock_start_http_server, registry):
        """Test the HTTP server is started once on the configured port"""
        publisher = MetricsPublisher(port=9100, registry=registry)

        publisher.start()
        publisher.start()

        mock_start_http_server.assert_called_once_with(9100, registry=registry)
        assert publisher.is_started()

    @patch("utils.metrics.publisher.start_http_server")
    def test_port_in_use(self, mock_start_http_server, registry):
        """Test a bind failure is reported with the port"""
        mock_start_http_server.side_effect = OSError(98, "Address already in use")
        publisher = MetricsPublisher(port=9100, registry=registry)

        with pytest.raises(RuntimeError, match="port 9100"):
            publisher.start()

        assert not publisher.is_started()


class TestReplicationMetrics:
    """Test ReplicationMetrics class"""

    def test_record_batch(self, registry):
        """Test rows, batches and the last batch size per table"""
        metrics = ReplicationMetrics(registry=registry)

        metrics.record_batch("users", rows=1000)
        metrics.record_batch("users", rows=250)

        labels = {"table_name": "users"}
        assert registry.get_sample_value("replication_rows_copied_total", labels) == 1250
        assert registry.get_sample_value("replication_batches_committed_total", labels) == 2
        assert registry.get_sample_value("replication_last_batch_rows", labels) == 250

    def test_record_table_success(self, registry):
        metrics = ReplicationMetrics(registry=registry)

        metrics.record_table("users", success=True, duration=1.5)

        assert registry.get_sample_value("replication_tables_total", {"status": "success"}) == 1
        assert registry.get_sample_value(
            "replication_copy_duration_seconds_sum", {"table_name": "users"}
        ) == 1.5
        assert registry.get_sample_value(
            "replication_table_failures_total", {"table_name": "users", "error_type": "WriteError"}
        ) is None

    def test_record_table_failure(self, registry):
        """Test failures are counted by error type"""
        metrics = ReplicationMetrics(registry=registry)

        metrics.record_table("orders", success=False, duration=0.2, error_type="WriteError")
        metrics.record_table("orders", success=False, duration=0.1)

        assert registry.get_sample_value("replication_tables_total", {"status": "failed"}) == 2
        assert registry.get_sample_value(
            "replication_table_failures_total", {"table_name": "orders", "error_type": "WriteError"}
        ) == 1
        assert registry.get_sample_value(
            "replication_table_failures_total", {"table_name": "orders", "error_type": "unknown"}
        ) == 1


class TestReconciliationMetrics:
    """Test ReconciliationMetrics class"""

    @patch("utils.metrics.reconciliation.time.time", return_value=1700000000.0)
    def test_record_verification(self, mock_time, registry):
        metrics = ReconciliationMetrics(registry=registry)

        metrics.record_verification("users", "mismatch", 5)

        assert registry.get_sample_value(
            "reconciliation_verifications_total", {"table_name": "users", "status": "mismatch"}
        ) == 1
        assert registry.get_sample_value(
            "reconciliation_row_count_difference", {"table_name": "users"}
        ) == 5
        assert registry.get_sample_value(
            "reconciliation_last_run_timestamp", {"table_name": "users"}
        ) == 1700000000.0

    def test_error_without_difference(self, registry):
        """Test an unknown difference leaves the gauge untouched"""
        metrics = ReconciliationMetrics(registry=registry)

        metrics.record_verification("ghost", "error", None)

        assert registry.get_sample_value(
            "reconciliation_row_count_difference", {"table_name": "ghost"}
        ) is None

    def test_record_schema_check(self, registry):
        metrics = ReconciliationMetrics(registry=registry)

        metrics.record_schema_check(3)
        metrics.record_schema_check(0)

        assert registry.get_sample_value("reconciliation_missing_tables") == 0
