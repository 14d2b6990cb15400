"""
Distributed tracing using OpenTelemetry.

Spans wrap each table copy, each committed batch and each table
verification. Without ``initialize_tracing`` the OpenTelemetry API hands
out no-op spans, so instrumented code runs unchanged in tests.
"""

from .context import add_span_attributes, add_span_event, trace_operation
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "add_span_attributes",
    "add_span_event",
]
