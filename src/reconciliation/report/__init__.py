"""
Verification report generation and formatting.

This submodule builds reports from verification outcomes, with support for
console, JSON and CSV output.
"""

from .formatters import (
    export_report_csv,
    export_report_json,
    format_report_console,
    format_report_csv,
    load_report_json,
)
from .generator import DiscrepancyType, generate_report

__all__ = [
    'generate_report',
    'DiscrepancyType',
    'export_report_json',
    'export_report_csv',
    'load_report_json',
    'format_report_csv',
    'format_report_console',
]
