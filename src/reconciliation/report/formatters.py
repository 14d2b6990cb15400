"""
Report formatting and export utilities.

This module provides functions to export verification reports
in various formats: JSON, CSV, and console/terminal output.
"""

import csv
import json
from typing import Any


def export_report_json(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to JSON file

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(report, f, indent=2, ensure_ascii=False)


def load_report_json(input_path: str) -> dict[str, Any]:
    """
    Load a report written by ``export_report_json``

    Raises:
        ValueError: If the file does not contain a report
    """
    with open(input_path, encoding='utf-8') as f:
        report = json.load(f)

    if not isinstance(report, dict) or "tables" not in report:
        raise ValueError(f"{input_path} is not a verification report")
    return report


def format_report_csv(report: dict[str, Any]) -> list[list[Any]]:
    """Report as CSV rows, header first, one row per verified table."""
    rows: list[list[Any]] = [[
        "Table",
        "Status",
        "Source Count",
        "Destination Count",
        "Difference",
        "Error",
    ]]

    for table in report.get("tables", []):
        rows.append([
            table.get("table", ""),
            table.get("status", ""),
            "" if table.get("source_count") is None else table["source_count"],
            "" if table.get("destination_count") is None else table["destination_count"],
            "" if table.get("difference") is None else table["difference"],
            table.get("error") or "",
        ])

    for table in report.get("missing_tables", []):
        rows.append([table, "MISSING", "", "", "", "missing in destination database"])

    return rows


def export_report_csv(report: dict[str, Any], output_path: str) -> None:
    """
    Export report to CSV file

    Args:
        report: Report dictionary
        output_path: Path to output file
    """
    with open(output_path, 'w', newline='', encoding='utf-8') as f:
        csv.writer(f).writerows(format_report_csv(report))


def _table_line(table: dict[str, Any]) -> str:
    if table.get("error"):
        return f"✗ {table['table']} - ERROR: {table['error']}"
    if table.get("match"):
        return f"✓ {table['table']} - {table['destination_count']} rows"
    return (
        f"✗ {table['table']} - MISMATCH (Source: {table['source_count']}, "
        f"Destination: {table['destination_count']}, Diff: {table['difference']})"
    )


def format_report_console(report: dict[str, Any]) -> str:
    """
    Format report for console output

    Args:
        report: Report dictionary

    Returns:
        Formatted string for console display
    """
    lines = []

    lines.append("=" * 60)
    lines.append("REPLICATION VERIFICATION REPORT")
    lines.append("=" * 60)
    lines.append("")

    for table in report.get("tables", []):
        lines.append(_table_line(table))

    for table in report.get("missing_tables", []):
        lines.append(f"✗ {table} - MISSING in destination database")

    if report.get("schema_error") and not report.get("missing_tables"):
        lines.append(f"✗ schema check - ERROR: {report['schema_error']}")

    lines.append("")
    lines.append("=" * 60)
    lines.append(f"Status:          {report['status']}")
    lines.append(f"Total Tables:    {report['total_tables']}")
    lines.append(f"Matched:         {report['tables_matched']}")
    lines.append(f"Mismatched:      {report['tables_mismatched']}")
    lines.append(f"Errors:          {report['tables_errored']}")
    lines.append(
        f"Total Rows:      {report['source_total_rows']:,} (Source) / "
        f"{report['destination_total_rows']:,} (Destination)"
    )
    lines.append("=" * 60)
    lines.append("")
    lines.append(report['summary'])

    if report.get('recommendations') and report['status'] == "FAIL":
        lines.append("")
        lines.append("RECOMMENDATIONS")
        lines.append("-" * 60)
        for i, rec in enumerate(report['recommendations'], 1):
            lines.append(f"{i}. {rec}")

    return "\n".join(lines)
