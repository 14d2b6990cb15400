"""
Post-replication verification.

Compares row counts table by table and checks that every source table
exists in the destination. Errors are table-scoped: a table that cannot
be counted produces an ERROR outcome and verification continues.
"""

import logging
from collections.abc import Iterable

from replication.catalog import Catalog
from replication.errors import ReplicationError
from utils.logging import ContextLogger, as_context_logger
from utils.metrics import ReconciliationMetrics
from utils.tracing import add_span_attributes, trace_operation

from .compare import SchemaCheck, VerificationOutcome, compare_row_counts, compare_table_sets


class Verifier:
    """Row count and table presence checks between two databases."""

    def __init__(
        self,
        source: Catalog,
        destination: Catalog,
        metrics: ReconciliationMetrics | None = None,
        logger: ContextLogger | logging.Logger | None = None,
    ):
        self.source = source
        self.destination = destination
        self.metrics = metrics
        self.logger = as_context_logger(logger, __name__)

    def verify_table(self, table: str) -> VerificationOutcome:
        """
        Count ``table`` on both sides.

        A count that fails (including a table missing on either side) is
        returned as the outcome's error.
        """
        with trace_operation("verify_table", table=table):
            try:
                source_count = self.source.count_rows(table)
            except ReplicationError as e:
                return VerificationOutcome(table=table, error=e)

            try:
                destination_count = self.destination.count_rows(table)
            except ReplicationError as e:
                return VerificationOutcome(table=table, source_count=source_count, error=e)

            outcome = compare_row_counts(table, source_count, destination_count)
            add_span_attributes(
                source_count=source_count,
                destination_count=destination_count,
                match=outcome.match,
            )
            return outcome

    def verify_all(self, tables: Iterable[str]) -> list[VerificationOutcome]:
        """One outcome per table, in the given order."""
        tables = list(tables)
        self.logger.info("Starting verification", table_count=len(tables))

        outcomes = []
        for table in tables:
            outcome = self.verify_table(table)
            outcomes.append(outcome)
            self._log_outcome(outcome)

            if self.metrics is not None:
                self.metrics.record_verification(
                    table, outcome.status.lower(), outcome.difference
                )

        return outcomes

    def _log_outcome(self, outcome: VerificationOutcome) -> None:
        log = self.logger.bind(table=outcome.table)
        if outcome.error is not None:
            log.error(f"Verification error: {outcome.error}")
        elif not outcome.match:
            log.warning(
                "Row count mismatch",
                source_rows=outcome.source_count,
                destination_rows=outcome.destination_count,
                diff=outcome.difference,
            )
        else:
            log.info("Verification passed", rows=outcome.destination_count)

    def verify_schema(self) -> SchemaCheck:
        """
        Check that every source table exists in the destination.

        Never raises for catalog failures; they are returned in
        ``SchemaCheck.error``.
        """
        self.logger.info("Verifying schema consistency")

        with trace_operation("verify_schema"):
            try:
                source_tables = self.source.list_tables()
            except ReplicationError as e:
                self.logger.error(f"Failed to list source tables: {e}")
                return SchemaCheck(error=e)

            try:
                destination_tables = self.destination.list_tables()
            except ReplicationError as e:
                self.logger.error(f"Failed to list destination tables: {e}")
                return SchemaCheck(source_tables=len(source_tables), error=e)

            check = compare_table_sets(source_tables, destination_tables)
            add_span_attributes(missing_tables=len(check.missing_in_destination))

        if self.metrics is not None:
            self.metrics.record_schema_check(len(check.missing_in_destination))

        if check.missing_in_destination:
            self.logger.warning(
                f"Tables missing in destination database: {check.missing_in_destination}"
            )
        else:
            self.logger.info(
                "Schema verification passed",
                source_tables=check.source_tables,
                destination_tables=check.destination_tables,
            )
        return check
