"""
Report generation logic for verification results.

This module turns per-table verification outcomes (and optionally the
table set check) into a report dictionary with discrepancy analysis and
actionable recommendations. The dictionary is JSON-serializable so a saved
report can be rendered again later.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from ..compare import SchemaCheck, VerificationOutcome


class DiscrepancyType:
    """Constants for discrepancy types."""

    ROW_COUNT_MISMATCH = "ROW_COUNT_MISMATCH"
    VERIFICATION_ERROR = "VERIFICATION_ERROR"
    MISSING_TABLE = "MISSING_TABLE"


def _as_dict(outcome: VerificationOutcome | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(outcome, VerificationOutcome):
        return outcome.to_dict()
    return dict(outcome)


def _create_row_count_discrepancy(result: dict[str, Any]) -> dict[str, Any]:
    """
    Create a row count mismatch discrepancy record.

    Args:
        result: Outcome dictionary (see VerificationOutcome.to_dict)

    Returns:
        Discrepancy dictionary
    """
    difference = result.get("difference") or 0
    source_count = result.get("source_count") or 0

    return {
        "table": result["table"],
        "issue_type": DiscrepancyType.ROW_COUNT_MISMATCH,
        "severity": _calculate_severity(source_count, abs(difference)),
        "details": {
            "source_count": source_count,
            "destination_count": result.get("destination_count") or 0,
            "missing_rows": difference if difference > 0 else 0,
            "extra_rows": -difference if difference < 0 else 0,
        },
        "timestamp": result.get("timestamp", datetime.now(UTC).isoformat()),
    }


def _create_error_discrepancy(result: dict[str, Any]) -> dict[str, Any]:
    return {
        "table": result["table"],
        "issue_type": DiscrepancyType.VERIFICATION_ERROR,
        "severity": "HIGH",
        "details": {
            "error": result.get("error"),
            "error_type": result.get("error_type"),
        },
        "timestamp": result.get("timestamp", datetime.now(UTC).isoformat()),
    }


def _create_missing_table_discrepancy(table: str) -> dict[str, Any]:
    return {
        "table": table,
        "issue_type": DiscrepancyType.MISSING_TABLE,
        "severity": "CRITICAL",
        "details": {"description": "Table exists in source but not in destination"},
        "timestamp": datetime.now(UTC).isoformat(),
    }


def generate_report(
    outcomes: Iterable[VerificationOutcome | Mapping[str, Any]],
    schema_check: SchemaCheck | None = None,
) -> dict[str, Any]:
    """
    Generate a verification report

    Args:
        outcomes: VerificationOutcome objects, or their ``to_dict`` form
        schema_check: Result of ``Verifier.verify_schema``, if one was run

    Returns:
        Dictionary containing:
        - status: PASS, FAIL, or NO_DATA
        - total_tables: Number of tables verified
        - tables_matched: Tables whose counts agree
        - tables_mismatched: Tables counted on both sides with different counts
        - tables_errored: Tables that could not be counted
        - missing_tables: Source tables absent from the destination
        - source_total_rows / destination_total_rows: Sums over tables
          without errors
        - tables: Per-table outcome dictionaries
        - discrepancies: List of discrepancy details
        - summary: Human-readable summary
        - recommendations: List of recommended actions
        - timestamp: Report generation timestamp
    """
    results = [_as_dict(outcome) for outcome in outcomes]
    missing_tables = list(schema_check.missing_in_destination) if schema_check else []
    schema_error = (
        str(schema_check.error)
        if schema_check is not None and schema_check.error is not None
        else None
    )

    tables_matched = 0
    tables_mismatched = 0
    tables_errored = 0
    source_total_rows = 0
    destination_total_rows = 0
    discrepancies = []

    for result in results:
        if result.get("error"):
            tables_errored += 1
            discrepancies.append(_create_error_discrepancy(result))
            continue

        source_total_rows += result.get("source_count") or 0
        destination_total_rows += result.get("destination_count") or 0

        if result.get("match"):
            tables_matched += 1
        else:
            tables_mismatched += 1
            discrepancies.append(_create_row_count_discrepancy(result))

    for table in missing_tables:
        discrepancies.append(_create_missing_table_discrepancy(table))

    if not results and not missing_tables and schema_error is None:
        status = "NO_DATA"
    elif discrepancies or schema_error is not None:
        status = "FAIL"
    else:
        status = "PASS"

    total_tables = len(results)

    return {
        "status": status,
        "total_tables": total_tables,
        "tables_matched": tables_matched,
        "tables_mismatched": tables_mismatched,
        "tables_errored": tables_errored,
        "missing_tables": missing_tables,
        "schema_error": schema_error,
        "source_total_rows": source_total_rows,
        "destination_total_rows": destination_total_rows,
        "tables": results,
        "discrepancies": discrepancies,
        "summary": _generate_summary(
            total_tables, tables_matched, tables_mismatched, tables_errored, len(missing_tables)
        ),
        "recommendations": _generate_recommendations(discrepancies),
        "timestamp": datetime.now(UTC).isoformat(),
    }


def _calculate_severity(source_count: int, difference: int) -> str:
    """
    Calculate severity level based on row count difference

    Args:
        source_count: Number of rows in source
        difference: Absolute difference in row counts

    Returns:
        Severity level: LOW, MEDIUM, HIGH, or CRITICAL
    """
    if source_count == 0:
        return "LOW" if difference == 0 else "CRITICAL"

    percentage_diff = (difference / source_count) * 100

    if percentage_diff < 0.1:
        return "LOW"
    elif percentage_diff < 1.0:
        return "MEDIUM"
    elif percentage_diff < 10.0:
        return "HIGH"
    else:
        return "CRITICAL"


def _generate_summary(
    total_tables: int,
    matched: int,
    mismatched: int,
    errored: int = 0,
    missing: int = 0,
) -> str:
    """Human-readable one-paragraph summary."""
    if total_tables == 0 and missing == 0:
        return "No tables were verified"

    if mismatched == 0 and errored == 0 and missing == 0:
        return f"All {total_tables} tables verified. Row counts match."

    parts = []
    if mismatched:
        parts.append(f"{mismatched} of {total_tables} tables have row count mismatches")
    if errored:
        parts.append(f"{errored} tables could not be verified")
    if missing:
        parts.append(f"{missing} source tables are missing in the destination")

    return "Verification found problems: " + "; ".join(parts) + f". {matched} tables match."


def _generate_recommendations(discrepancies: list[dict[str, Any]]) -> list[str]:
    """
    Generate actionable recommendations based on discrepancies

    Args:
        discrepancies: List of discrepancy details

    Returns:
        List of recommendation strings
    """
    if not discrepancies:
        return ["Destination is consistent with the source."]

    recommendations = []

    row_count_issues = [
        d for d in discrepancies if d["issue_type"] == DiscrepancyType.ROW_COUNT_MISMATCH
    ]
    if row_count_issues:
        missing_rows = sum(d["details"]["missing_rows"] for d in row_count_issues)
        extra_rows = sum(d["details"]["extra_rows"] for d in row_count_issues)

        if missing_rows > 0:
            recommendations.append(
                f"Destination database is missing {missing_rows} rows. "
                "Re-run 'dbreplicate data' for the affected tables."
            )
        if extra_rows > 0:
            recommendations.append(
                f"Destination database has {extra_rows} extra rows. "
                "Enable truncate_tables or check for other writers to the destination."
            )

    errors = [d for d in discrepancies if d["issue_type"] == DiscrepancyType.VERIFICATION_ERROR]
    if errors:
        recommendations.append(
            f"{len(errors)} table(s) could not be counted. "
            "Check that they exist in both databases and that both connections are healthy."
        )

    missing = [d for d in discrepancies if d["issue_type"] == DiscrepancyType.MISSING_TABLE]
    if missing:
        recommendations.append(
            f"{len(missing)} table(s) are missing in the destination. "
            "Apply the source schema to the destination before replicating."
        )

    if len(discrepancies) > 5:
        recommendations.append(
            "Multiple tables affected. Consider a full re-run with truncate_tables enabled."
        )

    return recommendations
