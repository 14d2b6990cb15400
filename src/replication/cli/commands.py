"""
CLI command implementations.

This module contains the implementation of the four CLI commands:
- pull: Copy data, then verify the tables that were copied
- data: Copy data only
- verify: Table set and row count verification
- report: Render a saved verification report

Every command returns a process exit status.
"""

import argparse
import csv
import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from reconciliation import (
    Verifier,
    export_report_csv,
    export_report_json,
    format_report_console,
    generate_report,
    load_report_json,
)
from reconciliation.report import format_report_csv
from utils.metrics import ReconciliationMetrics, ReplicationMetrics

from ..cancellation import CancellationToken
from ..catalog import Catalog
from ..config import ReplicatorConfig
from ..connection import close_quietly, connect
from ..copier import CopyOutcome
from ..orchestrator import format_summary, summarize
from ..pipeline import build_orchestrator
from .parser import split_list

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_FATAL = 2


@dataclass
class RunContext:
    """What every command needs besides its arguments."""

    config: ReplicatorConfig
    cancellation: CancellationToken
    replication_metrics: ReplicationMetrics | None = None
    reconciliation_metrics: ReconciliationMetrics | None = None


def apply_copy_overrides(config: ReplicatorConfig, args: argparse.Namespace) -> None:
    """Command-line copy options win over the configuration file."""
    settings = config.replication

    tables = split_list(getattr(args, 'tables', None))
    if tables:
        settings.tables = tables

    exclude = split_list(getattr(args, 'exclude', None))
    if exclude:
        settings.exclude_tables = exclude

    if getattr(args, 'batch_size', None) is not None:
        settings.batch_size = args.batch_size
    if getattr(args, 'anonymize', None) is not None:
        settings.anonymize = args.anonymize
    if getattr(args, 'truncate', None) is not None:
        settings.truncate_tables = args.truncate


@contextmanager
def database_connections(config: ReplicatorConfig) -> Iterator[tuple]:
    """
    Open source and destination connections, closing both on exit.

    Raises:
        DatabaseConnectionError: If either database is unreachable
    """
    source = connect(config.source, role="source")
    try:
        destination = connect(config.destination, role="destination")
    except BaseException:
        close_quietly(source, "source")
        raise

    try:
        yield source, destination
    finally:
        close_quietly(destination, "destination")
        close_quietly(source, "source")


def _write_report(report: dict, args: argparse.Namespace) -> None:
    output = getattr(args, 'output', None)
    if not output:
        return

    if args.output_format == 'csv':
        export_report_csv(report, output)
    else:
        export_report_json(report, output)
    logger.info(f"Report saved to {output}")


def _copy(context: RunContext, source, destination) -> list[CopyOutcome]:
    orchestrator = build_orchestrator(
        context.config,
        source,
        destination,
        metrics=context.replication_metrics,
        cancellation=context.cancellation,
    )
    return orchestrator.replicate_all()


def _verifier(context: RunContext, source, destination) -> Verifier:
    schema = context.config.replication.schema
    return Verifier(
        Catalog(source, schema=schema, role="source"),
        Catalog(destination, schema=schema, role="destination"),
        metrics=context.reconciliation_metrics,
    )


def cmd_pull(args: argparse.Namespace, context: RunContext) -> int:
    """
    Copy every table, then verify the successfully copied ones

    Args:
        args: Parsed command-line arguments
        context: Configuration, cancellation token and metrics
    """
    apply_copy_overrides(context.config, args)
    context.config.validate()

    logger.info("Starting database replication")

    with database_connections(context.config) as (source, destination):
        logger.info("Step 1/2: Copying data")
        outcomes = _copy(context, source, destination)

        copied = [outcome.table for outcome in outcomes if outcome.success]
        if context.cancellation.cancelled:
            logger.warning("Replication cancelled, skipping verification")
            print(format_summary(outcomes))
            return EXIT_FAILURES

        logger.info("Step 2/2: Verifying copied tables")
        verification = _verifier(context, source, destination).verify_all(copied)

    report = generate_report(verification)
    print(format_report_console(report))
    _write_report(report, args)

    summary = summarize(outcomes)
    if summary.failed:
        for table, error in summary.failures:
            print(f"✗ {table} - COPY FAILED: {error}")

    if summary.all_succeeded and report['status'] != 'FAIL':
        logger.info("Replication completed successfully")
        return EXIT_OK

    logger.warning(
        "Replication completed with failures",
        extra={"failed_tables": summary.failed, "report_status": report['status']},
    )
    return EXIT_FAILURES


def cmd_data(args: argparse.Namespace, context: RunContext) -> int:
    """
    Copy data only and print the copy summary

    Args:
        args: Parsed command-line arguments
        context: Configuration, cancellation token and metrics
    """
    apply_copy_overrides(context.config, args)
    context.config.validate()

    with database_connections(context.config) as (source, destination):
        outcomes = _copy(context, source, destination)

    print(format_summary(outcomes))
    return EXIT_OK if summarize(outcomes).all_succeeded else EXIT_FAILURES


def cmd_verify(args: argparse.Namespace, context: RunContext) -> int:
    """
    Compare table sets and row counts of both databases

    Tables come from --tables, then the configured table list, then every
    table of the source schema.

    Args:
        args: Parsed command-line arguments
        context: Configuration, cancellation token and metrics
    """
    config = context.config
    config.validate()

    with database_connections(config) as (source, destination):
        verifier = _verifier(context, source, destination)
        schema_check = verifier.verify_schema()

        tables = split_list(args.tables) or list(config.replication.tables)
        if not tables:
            tables = verifier.source.list_tables()

        outcomes = verifier.verify_all(tables)

    report = generate_report(outcomes, schema_check)
    print(format_report_console(report))
    _write_report(report, args)

    return EXIT_FAILURES if report['status'] == 'FAIL' else EXIT_OK


def cmd_report(args: argparse.Namespace) -> int:
    """
    Render a report saved by pull/verify --output

    Args:
        args: Parsed command-line arguments
    """
    try:
        report = load_report_json(args.input)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load report: {e}")
        return EXIT_FATAL

    if args.output:
        if args.format == 'json':
            export_report_json(report, args.output)
        elif args.format == 'csv':
            export_report_csv(report, args.output)
        else:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(format_report_console(report) + "\n")
        logger.info(f"Report saved to {args.output}")
    else:
        if args.format == 'json':
            print(json.dumps(report, indent=2, ensure_ascii=False))
        elif args.format == 'csv':
            csv.writer(sys.stdout).writerows(format_report_csv(report))
        else:
            print(format_report_console(report))

    return EXIT_OK
