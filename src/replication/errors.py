"""
Exception hierarchy for replication and reconciliation.

Table-scoped errors are captured into per-table outcomes; run-fatal errors
(table set resolution, initial connectivity, configuration) propagate to
the caller. The underlying driver error is always chained as ``__cause__``.
"""


class ReplicationError(Exception):
    """Base exception for the replicator."""

    def __init__(self, message: str, table: str | None = None):
        super().__init__(message)
        self.table = table


class ConfigError(ReplicationError):
    """Raised when configuration is missing or invalid."""


class DatabaseConnectionError(ReplicationError):
    """Raised when a database cannot be reached or the connection dropped."""


class CatalogQueryError(ReplicationError):
    """Raised when listing tables, columns or row counts fails."""


class TableNotFoundError(CatalogQueryError):
    """Raised when the catalog has no such table."""


class ReadError(ReplicationError):
    """Raised when scanning rows from the source cursor fails."""


class WriteError(ReplicationError):
    """Raised when truncating, inserting into or committing the destination fails."""


class SchemaMismatchError(ReplicationError):
    """Raised (or reported) when source tables are missing from the destination."""

    def __init__(self, missing_tables: list[str]):
        super().__init__(
            f"schema mismatch: {len(missing_tables)} tables missing in destination database"
        )
        self.missing_tables = list(missing_tables)


class ReplicationCancelled(ReplicationError):
    """Raised when an operator interrupt stops a run between batches or tables."""
