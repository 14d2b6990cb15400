"""
Metrics publisher for the Prometheus HTTP server.

A replication run is a batch job, so the exposition server is optional:
it is only started when a metrics port is configured.
"""

import logging

from prometheus_client import REGISTRY, CollectorRegistry, start_http_server

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    Expose a registry on the ``/metrics`` endpoint
    """

    def __init__(self, port: int = 9091, registry: CollectorRegistry | None = None):
        """
        Initialize metrics publisher

        Args:
            port: Port to expose metrics on (default: 9091)
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.port = port
        self.registry = registry or REGISTRY
        self._server_started = False

    def start(self) -> None:
        """Start the metrics HTTP server"""
        if self._server_started:
            logger.warning(f"Metrics server already running on port {self.port}")
            return

        try:
            start_http_server(self.port, registry=self.registry)
        except OSError as e:
            raise RuntimeError(
                f"Metrics server could not bind port {self.port}: {e}. "
                "Stop the conflicting process or choose a different metrics.port."
            ) from e

        self._server_started = True
        logger.info(f"Metrics server started on port {self.port}")

    def is_started(self) -> bool:
        """Check if metrics server is running"""
        return self._server_started
