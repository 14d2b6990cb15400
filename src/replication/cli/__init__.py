"""
Command-line interface for database replication.

Available commands:
- pull: Copy data, then verify the copied tables
- data: Copy data only
- verify: Compare table sets and row counts
- report: Render a saved verification report

Exit status is 0 when every table was copied and verified, 1 when some
tables failed or mismatched, and 2 when the run could not start or could
not resolve its table set.
"""

import functools
import logging
import sys

from utils.logging import setup_logging, shutdown_logging
from utils.metrics import MetricsPublisher, ReconciliationMetrics, ReplicationMetrics
from utils.tracing import initialize_tracing, shutdown_tracing

from ..cancellation import CancellationToken, install_signal_handlers, restore_signal_handlers
from ..config import load_config
from ..errors import ConfigError, ReplicationError
from .commands import (
    EXIT_FAILURES,
    EXIT_FATAL,
    EXIT_OK,
    RunContext,
    cmd_data,
    cmd_pull,
    cmd_report,
    cmd_verify,
)
from .credentials import apply_vault_credentials, configure_logging
from .parser import create_parser

logger = logging.getLogger(__name__)

COMMANDS = {
    'pull': cmd_pull,
    'data': cmd_data,
    'verify': cmd_verify,
}


@functools.lru_cache(maxsize=None)
def get_metrics() -> tuple[ReplicationMetrics, ReconciliationMetrics]:
    """Process-wide metrics; the default registry accepts each name once."""
    return ReplicationMetrics(), ReconciliationMetrics()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the dbreplicate CLI"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_FATAL

    if args.command == 'report':
        setup_logging(level=args.log_level or "INFO")
        return cmd_report(args)

    try:
        config = load_config(args.config, validate=False)
    except ConfigError as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return EXIT_FATAL

    configure_logging(config, args.log_level)

    cancellation = CancellationToken()
    previous_handlers = install_signal_handlers(cancellation)
    tracing_enabled = bool(config.tracing.otlp_endpoint or config.tracing.console_export)

    try:
        apply_vault_credentials(config)

        if tracing_enabled:
            initialize_tracing(
                otlp_endpoint=config.tracing.otlp_endpoint,
                console_export=config.tracing.console_export,
            )

        replication_metrics, reconciliation_metrics = get_metrics()
        if config.metrics.port:
            MetricsPublisher(port=config.metrics.port).start()

        context = RunContext(
            config=config,
            cancellation=cancellation,
            replication_metrics=replication_metrics,
            reconciliation_metrics=reconciliation_metrics,
        )
        return COMMANDS[args.command](args, context)
    except ReplicationError as e:
        logger.error(f"{args.command} failed: {e}")
        return EXIT_FATAL
    except RuntimeError as e:
        logger.error(str(e))
        return EXIT_FATAL
    finally:
        restore_signal_handlers(previous_handlers)
        if tracing_enabled:
            shutdown_tracing()
        shutdown_logging()


__all__ = [
    'main',
    'create_parser',
    'cmd_pull',
    'cmd_data',
    'cmd_verify',
    'cmd_report',
    'EXIT_OK',
    'EXIT_FAILURES',
    'EXIT_FATAL',
]
