"""
Shared utilities for the replicator

Provides:
- logging: console/JSON logging setup and ContextLogger
- retry: backoff for transient database errors
- sql_safety: identifier validation and psycopg2.sql composition
- metrics: Prometheus metrics
- tracing: OpenTelemetry spans
- vault_client: HashiCorp Vault integration for database credentials
"""

__version__ = "1.0.0"
__all__ = ["logging", "retry", "sql_safety", "metrics", "tracing", "vault_client"]
