"""
Metrics for table replication.

Tracks copied rows, committed batches, per-table durations and failures
so a long-running copy can be followed from a dashboard.
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram

logger = logging.getLogger(__name__)


class ReplicationMetrics:
    """
    Metrics for the streaming copier and the orchestrator
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize replication metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.tables_total = Counter(
            "replication_tables_total",
            "Tables processed by the replicator",
            ["status"],
            registry=self.registry,
        )

        self.rows_copied_total = Counter(
            "replication_rows_copied_total",
            "Rows committed to the destination",
            ["table_name"],
            registry=self.registry,
        )

        self.batches_committed_total = Counter(
            "replication_batches_committed_total",
            "Destination transactions committed",
            ["table_name"],
            registry=self.registry,
        )

        self.table_failures_total = Counter(
            "replication_table_failures_total",
            "Table copies aborted by an error",
            ["table_name", "error_type"],
            registry=self.registry,
        )

        self.copy_duration_seconds = Histogram(
            "replication_copy_duration_seconds",
            "Duration of a single table copy in seconds",
            ["table_name"],
            buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 300, 900, 3600),
            registry=self.registry,
        )

        self.last_batch_rows = Gauge(
            "replication_last_batch_rows",
            "Row count of the most recently committed batch",
            ["table_name"],
            registry=self.registry,
        )

    def record_batch(self, table_name: str, rows: int) -> None:
        """Record one committed destination transaction"""
        self.batches_committed_total.labels(table_name=table_name).inc()
        self.rows_copied_total.labels(table_name=table_name).inc(rows)
        self.last_batch_rows.labels(table_name=table_name).set(rows)

    def record_table(
        self,
        table_name: str,
        success: bool,
        duration: float,
        error_type: str | None = None,
    ) -> None:
        """
        Record the end of a table copy

        Args:
            table_name: Table that was copied
            success: Whether every row was committed
            duration: Wall time of the copy in seconds
            error_type: Exception class name for failed copies
        """
        status = "success" if success else "failed"
        self.tables_total.labels(status=status).inc()
        self.copy_duration_seconds.labels(table_name=table_name).observe(duration)

        if not success:
            self.table_failures_total.labels(
                table_name=table_name,
                error_type=error_type or "unknown",
            ).inc()
