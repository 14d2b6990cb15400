"""
Context managers and utilities for span management.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Context manager for tracing operations.

    Creates a span, adds attributes, records exceptions and re-raises them.

    Example:
        >>> with trace_operation("copy_table", table="users") as span:
        ...     outcome = copier.copy("users", columns)
        ...     span.set_attribute("rows_copied", outcome.rows_copied)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(operation_name, kind=kind) as span:
        for key, value in attributes.items():
            span.set_attribute(key, _attribute_value(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.record_exception(e)
            raise


def add_span_attributes(**attributes):
    """Add attributes to the current span, if it is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, _attribute_value(value))


def add_span_event(name: str, **attributes):
    """Add an event to the current span, if it is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        attrs = {k: _attribute_value(v) for k, v in attributes.items()}
        current_span.add_event(name, attributes=attrs)


def _attribute_value(value):
    # OTel attributes accept str/bool/int/float only
    if isinstance(value, (str, bool, int, float)):
        return value
    return str(value)
