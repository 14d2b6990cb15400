"""
Row count comparison.

A VerificationOutcome holds the counts observed on both sides of one
table. ``difference`` and ``match`` are derived from the counts so they
can never disagree with them.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class VerificationOutcome:
    """
    Row count comparison of one table.

    Attributes:
        table: Table name
        source_count: Rows in the source, None if it could not be counted
        destination_count: Rows in the destination, None if it could not be counted
        error: Exception that prevented the comparison, if any
        timestamp: When the comparison was made (ISO 8601, UTC)
    """

    table: str
    source_count: int | None = None
    destination_count: int | None = None
    error: Exception | None = None
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @property
    def difference(self) -> int | None:
        """source_count - destination_count; positive means rows are missing downstream."""
        if self.source_count is None or self.destination_count is None:
            return None
        return self.source_count - self.destination_count

    @property
    def match(self) -> bool:
        return self.error is None and self.difference == 0

    @property
    def status(self) -> str:
        if self.error is not None:
            return "ERROR"
        return "MATCH" if self.match else "MISMATCH"

    def to_dict(self) -> dict[str, Any]:
        """JSON-serializable form used by reports."""
        return {
            "table": self.table,
            "source_count": self.source_count,
            "destination_count": self.destination_count,
            "difference": self.difference,
            "match": self.match,
            "status": self.status,
            "error": str(self.error) if self.error is not None else None,
            "error_type": type(self.error).__name__ if self.error is not None else None,
            "timestamp": self.timestamp,
        }


def compare_row_counts(
    table_name: str,
    source_count: int,
    destination_count: int,
) -> VerificationOutcome:
    """
    Compare row counts between source and destination tables

    Args:
        table_name: Name of the table being compared
        source_count: Row count from the source database
        destination_count: Row count from the destination database

    Returns:
        VerificationOutcome with both counts

    Raises:
        ValueError: If row counts are negative
    """
    if source_count < 0 or destination_count < 0:
        raise ValueError(
            f"Row counts cannot be negative: source={source_count}, "
            f"destination={destination_count}"
        )

    return VerificationOutcome(
        table=table_name,
        source_count=source_count,
        destination_count=destination_count,
    )
