"""
Command-line argument parser configuration.

This module sets up the argument parser for the dbreplicate CLI tool,
defining all commands and their options.
"""

import argparse


def _add_copy_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--tables',
        help='Comma-separated list of tables to copy (bypasses discovery)'
    )
    parser.add_argument(
        '--exclude',
        help='Comma-separated list of tables to skip during discovery'
    )
    parser.add_argument(
        '--batch-size',
        type=int,
        help='Rows per destination transaction (default: from config, 1000)'
    )
    parser.add_argument(
        '--anonymize',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Anonymize PII columns while copying (default: from config)'
    )
    parser.add_argument(
        '--truncate',
        action=argparse.BooleanOptionalAction,
        default=None,
        help='Truncate destination tables before copying (default: from config)'
    )


def _add_report_output_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--output',
        help='Also write the verification report to this file'
    )
    parser.add_argument(
        '--output-format',
        choices=['json', 'csv'],
        default='json',
        help='Format of the --output file (default: json)'
    )


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog='dbreplicate',
        description="Copy a PostgreSQL database into another, optionally anonymizing PII",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Copy every table, then verify row counts
  dbreplicate pull --config config.yaml

  # Copy two tables with anonymization, 500 rows per transaction
  dbreplicate data --tables users,orders --anonymize --batch-size 500

  # Skip large audit tables during discovery
  dbreplicate data --exclude audit_log,events

  # Verify an existing copy and keep the report
  dbreplicate verify --output report.json

  # Render a saved report as CSV
  dbreplicate report --input report.json --format csv --output report.csv
        """
    )

    parser.add_argument(
        '--config',
        help='Config file (default: ./config.yaml, then ~/.dbreplicate/config.yaml)'
    )
    parser.add_argument(
        '--log-level',
        type=str.upper,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: from config, INFO)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    # ========== Pull command ==========
    pull_parser = subparsers.add_parser(
        'pull', help='Copy data, then verify the copied tables'
    )
    _add_copy_options(pull_parser)
    _add_report_output_options(pull_parser)

    # ========== Data command ==========
    data_parser = subparsers.add_parser('data', help='Copy data only')
    _add_copy_options(data_parser)

    # ========== Verify command ==========
    verify_parser = subparsers.add_parser(
        'verify', help='Compare table sets and row counts of both databases'
    )
    verify_parser.add_argument(
        '--tables',
        help='Comma-separated list of tables to verify (default: all source tables)'
    )
    _add_report_output_options(verify_parser)

    # ========== Report command ==========
    report_parser = subparsers.add_parser(
        'report', help='Render a saved verification report'
    )
    report_parser.add_argument(
        '--input',
        required=True,
        help='Report file written by pull/verify --output'
    )
    report_parser.add_argument(
        '--format',
        choices=['console', 'json', 'csv'],
        default='console',
        help='Output format (default: console)'
    )
    report_parser.add_argument(
        '--output',
        help='Output file (default: stdout)'
    )

    return parser


def split_list(value: str | None) -> list[str]:
    """Split a comma-separated option into trimmed, non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(',') if item.strip()]
