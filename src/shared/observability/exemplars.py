# OpenTelemetry spans paired with Prometheus metrics for tool calls and
# upstream gateway requests

from contextlib import contextmanager
from typing import Any, Dict

from opentelemetry import trace
from opentelemetry.trace import SpanKind

from .logging import get_logger
from .metrics import (
    gateway_request_duration_seconds,
    gateway_requests_total,
    mcp_tool_calls_total,
    mcp_tool_duration_seconds,
)

logger = get_logger(__name__)


def get_trace_context() -> Dict[str, str]:
    """
    Get current trace context for exemplar linking.

    Returns:
        Dictionary with trace_id and span_id
    """
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        return {
            "trace_id": format(ctx.trace_id, "032x"),
            "span_id": format(ctx.span_id, "016x"),
        }
    return {}


@contextmanager
def trace_mcp_tool(tool_name: str, arguments: Dict[str, Any]):
    """
    Context manager to trace MCP tool execution with metrics and exemplars.

    Args:
        tool_name: Name of the MCP tool
        arguments: Validated tool arguments

    Yields:
        Span object
    """
    tracer = trace.get_tracer(__name__)

    with tracer.start_as_current_span(
        f"mcp.tool.{tool_name}",
        kind=SpanKind.INTERNAL,
        attributes={
            "mcp.tool.name": tool_name,
            "mcp.tool.args": str(arguments),
        },
    ) as span:
        with mcp_tool_duration_seconds.labels(tool_name=tool_name).time():
            try:
                yield span
                mcp_tool_calls_total.labels(tool_name=tool_name, status="success").inc()
                span.set_attribute("mcp.tool.status", "success")
            except Exception as e:
                mcp_tool_calls_total.labels(tool_name=tool_name, status="error").inc()
                span.set_attribute("mcp.tool.status", "error")
                span.set_attribute("mcp.tool.error", str(e))
                span.record_exception(e)
                raise


@contextmanager
def trace_gateway_request(operation: str, resource: str):
    """
    Context manager to trace one upstream gateway request.

    Args:
        operation: Gateway operation (select, count, rpc)
        resource: Table or function name

    Yields:
        Span object
    """
    tracer = trace.get_tracer(__name__)

    with tracer.start_as_current_span(
        f"gateway.{operation}",
        kind=SpanKind.CLIENT,
        attributes={
            "gateway.operation": operation,
            "gateway.resource": resource,
        },
    ) as span:
        with gateway_request_duration_seconds.labels(operation=operation).time():
            try:
                yield span
                gateway_requests_total.labels(operation=operation, status="success").inc()
            except Exception as e:
                gateway_requests_total.labels(operation=operation, status="error").inc()
                span.set_attribute("gateway.error", str(e))
                span.record_exception(e)
                raise
