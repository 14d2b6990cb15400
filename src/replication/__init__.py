"""
PostgreSQL table replication.

Copies every table of a source database into a destination database in
bounded transactions, optionally anonymizing personal data on the way.

Usage:
    from replication import connect, load_config, build_orchestrator

    config = load_config("config.yaml")
    source = connect(config.source, role="source")
    destination = connect(config.destination, role="destination")
    outcomes = build_orchestrator(config, source, destination).replicate_all()
"""

from .cancellation import CancellationToken, install_signal_handlers, restore_signal_handlers
from .catalog import Catalog
from .config import DatabaseConfig, ReplicationSettings, ReplicatorConfig, load_config
from .connection import close_quietly, connect
from .copier import CopyOutcome, StreamingCopier
from .discovery import ColumnIntrospector, TableDiscovery, resolve_tables
from .errors import (
    CatalogQueryError,
    ConfigError,
    DatabaseConnectionError,
    ReadError,
    ReplicationCancelled,
    ReplicationError,
    SchemaMismatchError,
    TableNotFoundError,
    WriteError,
)
from .orchestrator import ReplicationOrchestrator, ReplicationSummary, format_summary, summarize
from .pipeline import build_orchestrator

__version__ = "1.0.0"
__all__ = [
    "CancellationToken",
    "install_signal_handlers",
    "restore_signal_handlers",
    "Catalog",
    "DatabaseConfig",
    "ReplicationSettings",
    "ReplicatorConfig",
    "load_config",
    "connect",
    "close_quietly",
    "CopyOutcome",
    "StreamingCopier",
    "TableDiscovery",
    "ColumnIntrospector",
    "resolve_tables",
    "ReplicationOrchestrator",
    "ReplicationSummary",
    "summarize",
    "format_summary",
    "build_orchestrator",
    "ReplicationError",
    "ConfigError",
    "DatabaseConnectionError",
    "CatalogQueryError",
    "TableNotFoundError",
    "ReadError",
    "WriteError",
    "SchemaMismatchError",
    "ReplicationCancelled",
]
