# FastAPI MCP gateway: JSON-RPC over HTTP POST, SSE keep-alive, health,
# discovery and Prometheus metrics

from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.responses import Response

from src.clients.gateway_client import create_gateway
from src.shared import init_config
from src.shared.observability import (
    get_correlation_id,
    get_logger,
    set_correlation_id,
    setup_logging,
    setup_tracing,
)
from src.shared.observability.metrics import (
    PrometheusMiddleware,
    get_metrics,
    setup_metrics,
)

from .dispatcher import RpcDispatcher
from .models import DiscoveryDocument, HealthResponse, StatusResponse, server_capabilities
from .registry import ToolRegistry
from .sse import hello_message, keepalive_stream

# Initialize config and logging
config, settings = init_config()
setup_logging(config.app.log_level)
logger = get_logger(__name__)

PROTOCOL_HEADER = "MCP-Protocol-Version"
SESSION_HEADER = "Mcp-Session-Id"
EVENT_STREAM = "text/event-stream"

registry = ToolRegistry(enabled=config.tools.enabled)

# Create FastAPI app
app = FastAPI(
    title=config.app.name,
    version=config.app.version,
    description="Case-file MCP gateway over Supabase PostgREST",
)
app.state.gateway = None
app.state.dispatcher = None

# Setup OpenTelemetry tracing
setup_tracing(app, config, settings)

# Setup Prometheus metrics
setup_metrics(config, settings)

# Add Prometheus middleware
app.add_middleware(PrometheusMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.server.cors_allow_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "Accept", "Authorization", PROTOCOL_HEADER, SESSION_HEADER],
    expose_headers=[SESSION_HEADER, PROTOCOL_HEADER],
    max_age=86400,
)


@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    """Add correlation ID to request context"""
    corr_id = request.headers.get("X-Correlation-ID")
    if not corr_id:
        corr_id = get_correlation_id()
    else:
        set_correlation_id(corr_id)

    response = await call_next(request)
    response.headers["X-Correlation-ID"] = corr_id
    return response


@app.middleware("http")
async def mcp_headers_middleware(request: Request, call_next):
    """Stamp the protocol version and echo the client's session id"""
    response = await call_next(request)
    response.headers[PROTOCOL_HEADER] = config.server.protocol_version
    session_id = request.headers.get(SESSION_HEADER)
    if session_id:
        response.headers[SESSION_HEADER] = session_id
    return response


def get_dispatcher() -> RpcDispatcher:
    if app.state.dispatcher is None:
        if app.state.gateway is None:
            app.state.gateway = create_gateway(config, settings)
        app.state.dispatcher = RpcDispatcher(registry, app.state.gateway, config)
    return app.state.dispatcher


def _gateway_configured() -> bool:
    gateway = app.state.gateway
    if gateway is not None:
        return gateway.configured
    return settings.gateway_configured


@app.on_event("startup")
async def startup_event():
    """Create the upstream gateway client"""
    logger.info(
        "Starting MCP gateway",
        version=config.app.version,
        protocol=config.server.protocol_version,
        tools=len(registry),
    )
    get_dispatcher()
    if not _gateway_configured():
        logger.warning("Gateway credentials missing; tools will report not configured")
    logger.info("MCP gateway started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Close the upstream gateway client"""
    logger.info("Shutting down MCP gateway")
    gateway = app.state.gateway
    close = getattr(gateway, "close", None)
    if close is not None:
        try:
            await close()
        except Exception as e:
            logger.error("Error during shutdown", error=str(e))
    app.state.dispatcher = None
    app.state.gateway = None
    logger.info("MCP gateway shut down successfully")


def _event_stream() -> StreamingResponse:
    hello = hello_message(
        config.server.protocol_version,
        config.app.name,
        config.app.version,
        server_capabilities(),
    )
    return StreamingResponse(
        keepalive_stream(hello, config.server.sse_ping_interval_seconds),
        media_type=EVENT_STREAM,
        headers={"Cache-Control": "no-cache"},
    )


def _wants_event_stream(request: Request) -> bool:
    return EVENT_STREAM in request.headers.get("accept", "")


# MCP endpoints


@app.get("/")
@app.get("/mcp")
async def status(request: Request):
    """Server status, or the SSE stream when the client asks for one"""
    if _wants_event_stream(request):
        return _event_stream()
    return StatusResponse(
        protocol=config.server.protocol_version,
        tools=len(registry),
        configured=_gateway_configured(),
    )


@app.post("/")
@app.post("/mcp")
async def rpc(request: Request):
    """JSON-RPC 2.0 endpoint"""
    body = await request.body()
    payload = await get_dispatcher().handle_raw(body)
    if payload is None:
        # Notification: acknowledge without a body
        return Response(status_code=200)
    return JSONResponse(payload)


@app.get("/sse")
async def sse():
    """Keep-alive event stream"""
    return _event_stream()


@app.get("/.well-known/mcp.json")
async def discovery():
    """MCP discovery document"""
    document = DiscoveryDocument(
        mcp_version=config.server.protocol_version,
        name=config.app.name,
        description="Case-file MCP gateway with search, fetch and analysis tools",
        tools=registry.names,
    )
    return JSONResponse(document.model_dump(by_alias=True, exclude_none=True))


# Health endpoints


@app.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint"""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=config.app.version,
        configured=_gateway_configured(),
    )


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint"""
    return Response(content=get_metrics(), media_type="text/plain; version=0.0.4")


if __name__ == "__main__":
    uvicorn.run(
        "src.mcp_server.main:app",
        host="0.0.0.0",
        port=8000,
        log_level=config.app.log_level.lower(),
    )
