"""
Replication orchestrator.

Resolves the table set once, then introspects and copies each table in
turn. A table that fails is recorded and the run moves on; only failing
to produce a table set at all stops the run.
"""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from utils.logging import ContextLogger, as_context_logger
from utils.tracing import add_span_attributes, trace_operation

from .cancellation import CancellationToken
from .config import ReplicationSettings
from .copier import CopyOutcome, StreamingCopier
from .discovery import ColumnIntrospector, TableDiscovery, resolve_tables
from .errors import ReplicationError


@dataclass(frozen=True)
class ReplicationSummary:
    """Aggregate view of one replication run."""

    total_tables: int
    successful: int
    failed: int
    cancelled: bool
    total_rows: int
    duration_seconds: float
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0 and not self.cancelled


def summarize(outcomes: Sequence[CopyOutcome]) -> ReplicationSummary:
    """
    Fold copy outcomes into a summary.

    ``total_rows`` counts rows of successful tables only; partial copies
    of failed tables are reported per table in ``failures``.
    """
    successful = [o for o in outcomes if o.success]
    failed = [o for o in outcomes if not o.success]

    return ReplicationSummary(
        total_tables=len(outcomes),
        successful=len(successful),
        failed=len(failed),
        cancelled=any(o.cancelled for o in outcomes),
        total_rows=sum(o.rows_copied for o in successful),
        duration_seconds=sum(o.duration_seconds for o in outcomes),
        failures=[(o.table, str(o.error)) for o in failed],
    )


def format_summary(outcomes: Sequence[CopyOutcome]) -> str:
    """Human-readable copy summary with one line per table."""
    summary = summarize(outcomes)

    lines = ["=" * 60, "Data Replication Summary", "=" * 60, ""]
    for outcome in outcomes:
        if outcome.success:
            lines.append(
                f"✓ {outcome.table}: {outcome.rows_copied} rows "
                f"in {outcome.batches_committed} batches ({outcome.duration_seconds:.2f}s)"
            )
        else:
            lines.append(
                f"✗ {outcome.table}: {outcome.error} "
                f"({outcome.rows_copied} rows committed before failure)"
            )

    lines.extend([
        "",
        f"Total Tables: {summary.total_tables}",
        f"Successful: {summary.successful}",
        f"Failed: {summary.failed}",
        f"Total Rows: {summary.total_rows}",
    ])
    if summary.cancelled:
        lines.append("Run was cancelled before all tables were copied")

    return "\n".join(lines)


class ReplicationOrchestrator:
    """Drives discovery, introspection and copying for a whole run."""

    def __init__(
        self,
        settings: ReplicationSettings,
        discovery: TableDiscovery,
        introspector: ColumnIntrospector,
        copier: StreamingCopier,
        logger: ContextLogger | logging.Logger | None = None,
        cancellation: CancellationToken | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.discovery = discovery
        self.introspector = introspector
        self.copier = copier
        self.logger = as_context_logger(logger, __name__)
        self.cancellation = cancellation
        self.clock = clock

    def resolve_tables(self) -> list[str]:
        """
        Tables this run will copy.

        Raises:
            CatalogQueryError: If discovery is needed and the catalog fails
        """
        return resolve_tables(
            self.discovery,
            explicit=self.settings.tables,
            exclude=self.settings.exclude_tables,
        )

    def replicate_table(self, table: str) -> CopyOutcome:
        """Introspect and copy one table; errors end up in the outcome."""
        log = self.logger.bind(table=table)
        started = self.clock()

        try:
            columns = self.introspector.columns_of(table)
        except ReplicationError as e:
            log.error(f"Failed to read columns of {table}: {e}")
            return CopyOutcome(table=table, error=e, duration_seconds=self.clock() - started)

        if self.settings.anonymize and self.copier.anonymizer is not None:
            anonymized = self.copier.anonymizer.describe(columns)
            if anonymized:
                log.debug(f"Anonymizing columns: {anonymized}")

        outcome = self.copier.copy(
            table,
            columns,
            truncate_first=self.settings.truncate_tables,
            anonymize=self.settings.anonymize,
            batch_size=self.settings.batch_size,
        )

        if outcome.cancelled:
            log.warning(f"Copy of {table} cancelled", rows=outcome.rows_copied)
        elif not outcome.success:
            log.error(
                f"Failed to copy {table}: {outcome.error}",
                rows=outcome.rows_copied,
                error_type=type(outcome.error).__name__,
            )
        return outcome

    def replicate_all(self) -> list[CopyOutcome]:
        """
        Copy every resolved table, one outcome per attempted table.

        Raises:
            CatalogQueryError: If the table set cannot be resolved
        """
        with trace_operation("replicate_all", anonymize=self.settings.anonymize):
            tables = self.resolve_tables()
            self.logger.info(
                f"Replicating {len(tables)} tables",
                batch_size=self.settings.batch_size,
                anonymize=self.settings.anonymize,
                truncate=self.settings.truncate_tables,
            )

            outcomes: list[CopyOutcome] = []
            for index, table in enumerate(tables, start=1):
                if self.cancellation is not None and self.cancellation.cancelled:
                    self.logger.warning(
                        f"Run cancelled, {len(tables) - index + 1} tables not attempted"
                    )
                    break

                self.logger.info(f"Replicating table {index}/{len(tables)}: {table}")
                outcome = self.replicate_table(table)
                outcomes.append(outcome)

                if outcome.cancelled:
                    break

            summary = summarize(outcomes)
            add_span_attributes(
                tables_attempted=summary.total_tables,
                tables_failed=summary.failed,
                total_rows=summary.total_rows,
            )

        self.logger.info(
            "Data replication completed",
            successful_tables=summary.successful,
            total_tables=summary.total_tables,
            total_rows=summary.total_rows,
        )
        return outcomes
