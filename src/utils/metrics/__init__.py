"""
Prometheus metrics for replication and reconciliation

Usage:
    from utils.metrics import MetricsPublisher, ReplicationMetrics

    publisher = MetricsPublisher(port=9091)
    publisher.start()

    metrics = ReplicationMetrics()
    metrics.record_batch("users", rows=1000)
"""

from .publisher import MetricsPublisher
from .reconciliation import ReconciliationMetrics
from .replication import ReplicationMetrics

__all__ = [
    "MetricsPublisher",
    "ReplicationMetrics",
    "ReconciliationMetrics",
]
