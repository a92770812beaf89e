# Observability package
from .exemplars import get_trace_context, trace_gateway_request, trace_mcp_tool
from .logging import (
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
)
from .metrics import get_metrics, setup_metrics
from .tracing import setup_tracing

__all__ = [
    "get_logger",
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "setup_tracing",
    "get_trace_context",
    "setup_metrics",
    "get_metrics",
    "trace_mcp_tool",
    "trace_gateway_request",
]
