"""Wiring of the replication components from configuration."""

import logging

from transformation import FieldAnonymizer
from utils.logging import ContextLogger
from utils.metrics import ReplicationMetrics

from .cancellation import CancellationToken
from .catalog import Catalog
from .config import ReplicatorConfig
from .copier import StreamingCopier
from .discovery import ColumnIntrospector, TableDiscovery
from .orchestrator import ReplicationOrchestrator


def build_orchestrator(
    config: ReplicatorConfig,
    source,
    destination,
    metrics: ReplicationMetrics | None = None,
    cancellation: CancellationToken | None = None,
    logger: ContextLogger | logging.Logger | None = None,
) -> ReplicationOrchestrator:
    """
    Assemble an orchestrator over open source and destination connections.

    The anonymizer is only created when ``replication.anonymize`` is set.
    """
    settings = config.replication
    source_catalog = Catalog(source, schema=settings.schema, role="source", logger=logger)

    copier = StreamingCopier(
        source,
        destination,
        anonymizer=FieldAnonymizer() if settings.anonymize else None,
        metrics=metrics,
        logger=logger,
        cancellation=cancellation,
        schema=settings.schema,
    )

    return ReplicationOrchestrator(
        settings,
        TableDiscovery(source_catalog, logger=logger),
        ColumnIntrospector(source_catalog),
        copier,
        logger=logger,
        cancellation=cancellation,
    )
