"""
Catalog queries against one PostgreSQL connection.

Everything the replicator and the verifier need to know about a database
(which tables exist, their columns, how many rows they hold) goes through
``Catalog`` so that retries, rollback and error classification live in
one place.
"""

import logging
from collections.abc import Callable, Sequence
from typing import Any

import psycopg2
import psycopg2.errors
from opentelemetry import trace

from utils.logging import ContextLogger, as_context_logger
from utils.retry import retry_database_operation
from utils.sql_safety import build_count, validate_identifier, validate_table_name
from utils.tracing import trace_operation

from .errors import CatalogQueryError, DatabaseConnectionError, TableNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA = "public"

LIST_TABLES_QUERY = """
    SELECT tablename
    FROM pg_catalog.pg_tables
    WHERE schemaname = %s
    ORDER BY tablename
"""

LIST_COLUMNS_QUERY = """
    SELECT column_name
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""


class Catalog:
    """
    Read-only catalog access for one database.

    Every query runs in its own short transaction that is rolled back when
    the query finishes, successfully or not. A failed statement therefore
    never leaves the connection in an aborted transaction.
    """

    def __init__(
        self,
        connection,
        schema: str = DEFAULT_SCHEMA,
        role: str = "database",
        logger: ContextLogger | logging.Logger | None = None,
        max_retries: int = 3,
        retry_sleep: Callable[[float], None] | None = None,
    ):
        """
        Args:
            connection: psycopg2 connection
            schema: Schema that bare table names belong to
            role: "source" or "destination", used in logs and errors
            logger: Injected logger (module logger by default)
            max_retries: Retries for transient errors
            retry_sleep: Sleep function used between retries (tests pass a no-op)
        """
        validate_identifier(schema)
        self.connection = connection
        self.schema = schema
        self.role = role
        self.logger = as_context_logger(logger, __name__).bind(database=role)
        self.max_retries = max_retries
        self._retry_kwargs = {} if retry_sleep is None else {"sleep": retry_sleep}

    def _rollback(self) -> None:
        if self.connection.closed:
            return
        try:
            self.connection.rollback()
        except psycopg2.Error as e:
            self.logger.warning(f"Rollback on {self.role} connection failed: {e}")

    def _classify(self, error: psycopg2.Error, operation: str, table: str | None):
        if isinstance(error, psycopg2.errors.UndefinedTable):
            return TableNotFoundError(
                f"Table {table} not found in {self.role} database", table=table
            )
        if isinstance(error, (psycopg2.OperationalError, psycopg2.InterfaceError)):
            return DatabaseConnectionError(
                f"Lost {self.role} connection during {operation}: {error}", table=table
            )
        return CatalogQueryError(
            f"{operation} failed on {self.role} database: {error}", table=table
        )

    def _fetch(self, operation: str, query: Any, params: Sequence | None = None,
               table: str | None = None) -> list[tuple]:
        def on_retry(attempt: int, error: Exception, delay: float) -> None:
            self._rollback()

        @retry_database_operation(
            max_retries=self.max_retries, on_retry=on_retry, **self._retry_kwargs
        )
        def execute() -> list[tuple]:
            with self.connection.cursor() as cursor:
                cursor.execute(query, params)
                return cursor.fetchall()

        with trace_operation(
            f"catalog.{operation}",
            kind=trace.SpanKind.CLIENT,
            db_role=self.role,
            table=table or "",
        ):
            try:
                return execute()
            except psycopg2.Error as e:
                raise self._classify(e, operation, table) from e
            finally:
                self._rollback()

    def _split(self, table: str) -> tuple[str, str]:
        try:
            validate_table_name(table)
        except ValueError as e:
            raise CatalogQueryError(str(e), table=table) from e

        if "." in table:
            schema, name = table.split(".", 1)
            return schema, name
        return self.schema, table

    def list_tables(self) -> list[str]:
        """
        Tables of the catalog schema in lexicographic order.

        Raises:
            CatalogQueryError: If the catalog cannot be queried
        """
        rows = self._fetch("list_tables", LIST_TABLES_QUERY, (self.schema,))
        tables = [row[0] for row in rows]
        self.logger.debug(f"Found {len(tables)} tables in schema {self.schema}")
        return tables

    def list_columns(self, table: str) -> list[str]:
        """
        Column names of ``table`` ordered by their ordinal position.

        An unknown table yields an empty list; the introspector decides
        whether that is an error.
        """
        schema, name = self._split(table)
        rows = self._fetch("list_columns", LIST_COLUMNS_QUERY, (schema, name), table=table)
        return [row[0] for row in rows]

    def count_rows(self, table: str) -> int:
        """
        ``SELECT COUNT(*)`` of ``table``.

        Raises:
            TableNotFoundError: If the table does not exist
            CatalogQueryError: If the count fails for any other reason
        """
        self._split(table)
        rows = self._fetch("count_rows", build_count(table, self.schema), table=table)
        return int(rows[0][0])
