"""
Metrics for post-replication reconciliation.

Tracks verification runs, row count mismatches and schema drift.
"""

import logging
import time

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge

logger = logging.getLogger(__name__)


class ReconciliationMetrics:
    """
    Metrics for row count and table set verification
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize reconciliation metrics

        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.verifications_total = Counter(
            "reconciliation_verifications_total",
            "Table verifications by outcome",
            ["table_name", "status"],
            registry=self.registry,
        )

        self.row_count_difference = Gauge(
            "reconciliation_row_count_difference",
            "Difference in row counts (source - destination)",
            ["table_name"],
            registry=self.registry,
        )

        self.missing_tables = Gauge(
            "reconciliation_missing_tables",
            "Source tables absent from the destination catalog",
            registry=self.registry,
        )

        self.last_run_timestamp = Gauge(
            "reconciliation_last_run_timestamp",
            "Timestamp of the last verification",
            ["table_name"],
            registry=self.registry,
        )

    def record_verification(
        self,
        table_name: str,
        status: str,
        difference: int | None = None,
    ) -> None:
        """
        Record one table verification

        Args:
            table_name: Verified table
            status: "match", "mismatch" or "error"
            difference: Source minus destination row count, if known
        """
        self.verifications_total.labels(table_name=table_name, status=status).inc()
        self.last_run_timestamp.labels(table_name=table_name).set(time.time())

        if difference is not None:
            self.row_count_difference.labels(table_name=table_name).set(difference)

        if status == "mismatch":
            logger.debug(f"Recorded row count mismatch: table={table_name}, diff={difference}")

    def record_schema_check(self, missing_tables: int) -> None:
        """Record the number of tables missing from the destination"""
        self.missing_tables.set(missing_tables)
