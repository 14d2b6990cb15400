"""
Streaming table copier.

Rows are read through a server-side cursor so a table of any size is held
in memory at most ``batch_size`` rows at a time, and written to the
destination in transactions of ``batch_size`` rows:

    TRUNCATE (own transaction) -> SELECT via named cursor ->
    INSERT ... COMMIT every batch_size rows -> COMMIT remainder

A failure aborts the table and rolls back only the batch in progress;
batches committed before it stay in the destination.
"""

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass

import psycopg2

from transformation import FieldAnonymizer
from utils.logging import ContextLogger, as_context_logger
from utils.metrics import ReplicationMetrics
from utils.sql_safety import build_insert, build_select_all, build_truncate
from utils.tracing import add_span_attributes, add_span_event, trace_operation

from .cancellation import CancellationToken
from .errors import ReadError, ReplicationCancelled, ReplicationError, WriteError

DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class CopyOutcome:
    """
    Result of copying one table.

    Attributes:
        table: Table name as it was requested
        rows_copied: Rows durably committed to the destination
        batches_committed: Destination transactions committed (truncate excluded)
        success: True only when every source row was committed
        error: The exception that stopped the copy, if any
        duration_seconds: Wall time of the copy
    """

    table: str
    rows_copied: int = 0
    batches_committed: int = 0
    success: bool = False
    error: Exception | None = None
    duration_seconds: float = 0.0

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, ReplicationCancelled)


class _Progress:
    __slots__ = ("rows", "batches")

    def __init__(self):
        self.rows = 0
        self.batches = 0


class StreamingCopier:
    """Copies tables from a source connection to a destination connection."""

    def __init__(
        self,
        source,
        destination,
        anonymizer: FieldAnonymizer | None = None,
        metrics: ReplicationMetrics | None = None,
        logger: ContextLogger | logging.Logger | None = None,
        cancellation: CancellationToken | None = None,
        schema: str = "public",
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            source: psycopg2 connection to read from
            destination: psycopg2 connection to write to
            anonymizer: Field anonymizer used when a copy asks for anonymization
            metrics: Prometheus metrics to record batches and tables into
            logger: Injected logger
            cancellation: Token checked after every committed batch
            schema: Schema that bare table names belong to
            clock: Monotonic clock used for durations
        """
        self.source = source
        self.destination = destination
        self.anonymizer = anonymizer
        self.metrics = metrics
        self.logger = as_context_logger(logger, __name__)
        self.cancellation = cancellation
        self.schema = schema
        self.clock = clock

    def copy(
        self,
        table: str,
        columns: Sequence[str],
        truncate_first: bool = True,
        anonymize: bool = False,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> CopyOutcome:
        """
        Copy every row of ``table``.

        Errors are captured in the returned outcome, never raised, so one
        broken table cannot stop a run.

        Args:
            table: Table to copy, bare or schema-qualified
            columns: Introspected column list; used verbatim for SELECT and INSERT
            truncate_first: Empty the destination table (CASCADE) before copying
            anonymize: Pass every row through the anonymizer
            batch_size: Rows per destination transaction

        Raises:
            ValueError: If ``batch_size`` is not positive, or anonymization is
                requested without an anonymizer
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if anonymize and self.anonymizer is None:
            raise ValueError("anonymize=True requires an anonymizer")

        columns = tuple(columns)
        log = self.logger.bind(table=table)
        progress = _Progress()
        error: ReplicationError | None = None
        started = self.clock()

        with trace_operation(
            "copy_table",
            table=table,
            column_count=len(columns),
            batch_size=batch_size,
            anonymize=anonymize,
            truncate=truncate_first,
        ):
            try:
                select, insert = self._statements(table, columns)
                if truncate_first:
                    self._truncate(table)
                self._stream(table, columns, select, insert, anonymize, batch_size, progress, log)
            except ReplicationError as e:
                error = e
                self._rollback_destination(log)

            add_span_attributes(
                rows_copied=progress.rows,
                batches_committed=progress.batches,
                success=error is None,
            )

        duration = self.clock() - started
        outcome = CopyOutcome(
            table=table,
            rows_copied=progress.rows,
            batches_committed=progress.batches,
            success=error is None,
            error=error,
            duration_seconds=duration,
        )

        if self.metrics is not None:
            self.metrics.record_table(
                table,
                outcome.success,
                duration,
                error_type=type(error).__name__ if error else None,
            )

        if outcome.success:
            log.info(
                f"Copied {progress.rows} rows from {table}",
                rows=progress.rows,
                batches=progress.batches,
                duration_seconds=round(duration, 3),
            )
        return outcome

    def _statements(self, table: str, columns: tuple[str, ...]):
        try:
            return (
                build_select_all(table, columns, self.schema),
                build_insert(table, columns, self.schema),
            )
        except ValueError as e:
            raise ReplicationError(f"Cannot copy {table}: {e}", table=table) from e

    def _truncate(self, table: str) -> None:
        statement = build_truncate(table, self.schema)
        try:
            with self.destination.cursor() as cursor:
                cursor.execute(statement)
            self.destination.commit()
        except psycopg2.Error as e:
            raise WriteError(f"Failed to truncate {table}: {e}", table=table) from e

    def _stream(
        self,
        table: str,
        columns: tuple[str, ...],
        select,
        insert,
        anonymize: bool,
        batch_size: int,
        progress: _Progress,
        log: ContextLogger,
    ) -> None:
        # Named cursors are server-side: rows arrive itersize at a time
        try:
            source_cursor = self.source.cursor(name=f"replicate_{uuid.uuid4().hex}")
        except psycopg2.Error as e:
            raise ReadError(f"Failed to open source cursor for {table}: {e}", table=table) from e
        source_cursor.itersize = batch_size

        try:
            try:
                source_cursor.execute(select)
                rows = iter(source_cursor)
            except psycopg2.Error as e:
                raise ReadError(f"Failed to query {table}: {e}", table=table) from e

            try:
                dest_cursor = self.destination.cursor()
            except psycopg2.Error as e:
                raise WriteError(f"Failed to open destination cursor for {table}: {e}", table=table) from e

            with dest_cursor:
                pending = 0
                while True:
                    try:
                        row = next(rows)
                    except StopIteration:
                        break
                    except psycopg2.Error as e:
                        raise ReadError(f"Failed to scan row from {table}: {e}", table=table) from e

                    values = self._prepare(table, columns, row, anonymize)

                    try:
                        dest_cursor.execute(insert, values)
                    except psycopg2.Error as e:
                        raise WriteError(f"Failed to insert row into {table}: {e}", table=table) from e

                    pending += 1
                    if pending == batch_size:
                        self._commit(table, pending, progress, log)
                        pending = 0
                        self._check_cancelled(table, progress)

                if pending:
                    self._commit(table, pending, progress, log)
        finally:
            self._release_source(source_cursor, log)

    def _prepare(self, table: str, columns: tuple[str, ...], row, anonymize: bool) -> tuple:
        if not anonymize:
            return tuple(row)
        try:
            return self.anonymizer.transform_row(columns, row)
        except Exception as e:
            raise ReplicationError(f"Failed to anonymize row of {table}: {e}", table=table) from e

    def _commit(self, table: str, rows: int, progress: _Progress, log: ContextLogger) -> None:
        try:
            self.destination.commit()
        except psycopg2.Error as e:
            raise WriteError(f"Failed to commit batch into {table}: {e}", table=table) from e

        progress.rows += rows
        progress.batches += 1

        if self.metrics is not None:
            self.metrics.record_batch(table, rows)
        add_span_event("batch_committed", rows=rows, total_rows=progress.rows)
        log.debug(
            f"Committed batch {progress.batches} ({rows} rows)",
            total_rows=progress.rows,
        )

    def _check_cancelled(self, table: str, progress: _Progress) -> None:
        if self.cancellation is not None and self.cancellation.cancelled:
            raise ReplicationCancelled(
                f"Copy of {table} cancelled after {progress.rows} rows "
                f"({self.cancellation.reason})",
                table=table,
            )

    def _rollback_destination(self, log: ContextLogger) -> None:
        if self.destination.closed:
            return
        try:
            self.destination.rollback()
        except psycopg2.Error as e:
            log.warning(f"Rollback of destination batch failed: {e}")

    def _release_source(self, cursor, log: ContextLogger) -> None:
        # Closing a named cursor and ending the read transaction frees the
        # server-side portal and its snapshot
        try:
            if not cursor.closed:
                cursor.close()
        except psycopg2.Error as e:
            log.warning(f"Failed to close source cursor: {e}")

        if self.source.closed:
            return
        try:
            self.source.rollback()
        except psycopg2.Error as e:
            log.warning(f"Failed to end source read transaction: {e}")
