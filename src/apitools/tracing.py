"""
Trace context lookup for error bodies.

Normalized error responses carry a ``trace_id`` only when a distributed
trace is in progress. The active span comes from the OpenTelemetry API;
with no SDK installed or no span started, the span context is invalid and
the id is omitted.
"""

from typing import Optional

from opentelemetry import trace


def current_trace_id() -> Optional[str]:
    """
    Return the active trace id as 32 lowercase hex chars, or None.

    None when no span is recording (the default no-op tracer yields
    INVALID_SPAN, whose trace id is 0).
    """
    span_context = trace.get_current_span().get_span_context()
    if span_context.trace_id == trace.INVALID_TRACE_ID:
        return None
    return trace.format_trace_id(span_context.trace_id)
