"""
Table set comparison between the source and destination catalogs.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

from replication.errors import ReplicationError, SchemaMismatchError


@dataclass(frozen=True)
class SchemaCheck:
    """
    Outcome of comparing the table sets of both databases.

    Attributes:
        missing_in_destination: Source tables absent from the destination, sorted
        source_tables: Number of tables in the source schema
        destination_tables: Number of tables in the destination schema
        error: SchemaMismatchError when tables are missing, the catalog error
            when either side could not be listed, otherwise None
    """

    missing_in_destination: list[str] = field(default_factory=list)
    source_tables: int = 0
    destination_tables: int = 0
    error: ReplicationError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def compare_table_sets(
    source_tables: Iterable[str],
    destination_tables: Iterable[str],
) -> SchemaCheck:
    """
    Find source tables that the destination does not have.

    Tables that exist only in the destination are not an error.
    """
    source = set(source_tables)
    destination = set(destination_tables)
    missing = sorted(source - destination)

    return SchemaCheck(
        missing_in_destination=missing,
        source_tables=len(source),
        destination_tables=len(destination),
        error=SchemaMismatchError(missing) if missing else None,
    )
