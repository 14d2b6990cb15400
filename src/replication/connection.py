"""PostgreSQL connection establishment."""

import logging

import psycopg2
import psycopg2.extensions
from psycopg2.extras import register_default_json, register_default_jsonb
from opentelemetry import trace

from utils.retry import retry_database_operation
from utils.tracing import trace_operation

from .config import DatabaseConfig
from .errors import DatabaseConnectionError

logger = logging.getLogger(__name__)

APPLICATION_NAME = "pg-replicator"


@retry_database_operation(max_retries=2, base_delay=1.0)
def _open(config: DatabaseConfig, application_name: str) -> psycopg2.extensions.connection:
    return psycopg2.connect(application_name=application_name, **config.connection_kwargs())


def connect(
    config: DatabaseConfig,
    application_name: str = APPLICATION_NAME,
    role: str = "database",
) -> psycopg2.extensions.connection:
    """
    Open a connection described by ``config``.

    The connection is left in psycopg2's default transactional mode: every
    statement opens a transaction that the caller commits or rolls back.
    json and jsonb values are returned as text so they can be written
    back unchanged.

    Args:
        config: Host, port, credentials and SSL mode
        application_name: Reported in ``pg_stat_activity``
        role: "source" or "destination", for logs and errors

    Raises:
        DatabaseConnectionError: If the server cannot be reached or rejects
            the credentials
    """
    with trace_operation(
        "postgres_connect",
        kind=trace.SpanKind.CLIENT,
        db_host=config.host,
        db_name=config.database,
        db_role=role,
    ):
        try:
            conn = _open(config, application_name)
        except psycopg2.Error as e:
            raise DatabaseConnectionError(
                f"Failed to connect to {role} database {config.describe()}: {e}"
            ) from e

    _keep_json_raw(conn)
    logger.info(f"Connected to {role} database {config.describe()}")
    return conn


def _keep_json_raw(conn) -> None:
    # Decoded dict/list values cannot be passed back as INSERT parameters
    register_default_json(conn, loads=_identity)
    register_default_jsonb(conn, loads=_identity)


def _identity(value):
    return value


def close_quietly(conn, role: str = "database") -> None:
    """Close a connection, logging (not raising) a failure to do so."""
    if conn is None or conn.closed:
        return
    try:
        conn.close()
    except psycopg2.Error as e:
        logger.warning(f"Error closing {role} connection: {e}")
