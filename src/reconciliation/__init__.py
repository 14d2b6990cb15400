"""
Reconciliation of a replicated destination against its source.

Components:
- compare: Row count and table set comparison
- verifier: Runs the comparisons against live databases
- report: Verification report generation and export

Usage:
    from reconciliation import Verifier, generate_report, format_report_console

    verifier = Verifier(source_catalog, destination_catalog)
    outcomes = verifier.verify_all(["users", "orders"])
    print(format_report_console(generate_report(outcomes, verifier.verify_schema())))
"""

from .compare import SchemaCheck, VerificationOutcome, compare_row_counts, compare_table_sets
from .report import (
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
    load_report_json,
)
from .verifier import Verifier

__version__ = "1.0.0"
__all__ = [
    "Verifier",
    "VerificationOutcome",
    "SchemaCheck",
    "compare_row_counts",
    "compare_table_sets",
    "generate_report",
    "format_report_console",
    "export_report_json",
    "export_report_csv",
    "load_report_json",
]
