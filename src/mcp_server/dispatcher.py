"""
JSON-RPC 2.0 dispatcher for MCP methods.

Each call is independent. Protocol failures become JSON-RPC error objects;
tool failures (``ToolError``) become soft errors inside a successful result.
Requests without an ``id`` are notifications and produce no response body.
"""

import json
import time
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import ValidationError

from src.clients.gateway_client import DataGateway
from src.mcp_server.handlers import ToolContext
from src.mcp_server.models import (
    InitializeResult,
    JsonRpcErrorBody,
    JsonRpcRequest,
    JsonRpcResponse,
    ServerInfo,
    server_capabilities,
)
from src.mcp_server.registry import ToolRegistry
from src.mcp_server.validation import validate_arguments
from src.query.normalizer import text_content
from src.shared.config import Config
from src.shared.errors import (
    INTERNAL_ERROR,
    InvalidArgumentError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    ProtocolError,
    ToolError,
)
from src.shared.observability import get_logger, get_trace_context, trace_mcp_tool
from src.shared.observability.metrics import mcp_rpc_errors_total

logger = get_logger(__name__)

MethodHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


def rpc_result(request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return JsonRpcResponse(id=request_id, result=result).to_wire()


def rpc_error(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    mcp_rpc_errors_total.labels(code=str(code)).inc()
    return JsonRpcResponse(
        id=request_id, error=JsonRpcErrorBody(code=code, message=message)
    ).to_wire()


class RpcDispatcher:
    def __init__(self, registry: ToolRegistry, gateway: DataGateway, config: Config):
        self.registry = registry
        self.context = ToolContext(gateway=gateway, config=config)
        self.config = config
        self._methods: Dict[str, MethodHandler] = {
            "initialize": self._initialize,
            "initialized": self._empty,
            "ping": self._empty,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
            "prompts/list": self._prompts_list,
            "resources/list": self._resources_list,
        }

    async def handle_raw(self, body: Union[bytes, str]) -> Optional[Dict[str, Any]]:
        """Decode a request body and dispatch it; ``None`` means no response body."""
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.info("Malformed JSON-RPC body", error=str(exc))
            error = ParseError(str(exc))
            return rpc_error(None, error.code, error.message)
        return await self.handle(payload)

    async def handle(self, payload: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(payload, dict):
            error = InvalidRequestError("body must be a JSON object")
            return rpc_error(None, error.code, error.message)

        request_id = payload.get("id")
        notification = request_id is None

        try:
            request = JsonRpcRequest.model_validate(payload)
        except ValidationError as exc:
            if notification:
                return None
            error = InvalidRequestError(_first_validation_message(exc))
            return rpc_error(request_id, error.code, error.message)

        start = time.time()
        try:
            result = await self._dispatch(request)
        except ProtocolError as exc:
            logger.info(
                "JSON-RPC request rejected",
                method=request.method,
                code=exc.code,
                error=exc.message,
            )
            return None if notification else rpc_error(request_id, exc.code, exc.message)
        except Exception as exc:
            logger.error(
                "JSON-RPC handler failed",
                method=request.method,
                error=str(exc),
                exc_info=True,
                **get_trace_context(),
            )
            if notification:
                return None
            return rpc_error(request_id, INTERNAL_ERROR, f"Internal error: {exc}")

        logger.debug(
            "JSON-RPC request handled",
            method=request.method,
            notification=notification,
            duration_ms=round((time.time() - start) * 1000, 2),
        )
        return None if notification else rpc_result(request_id, result)

    async def _dispatch(self, request: JsonRpcRequest) -> Dict[str, Any]:
        handler = self._methods.get(request.method)
        if handler is None:
            raise MethodNotFoundError(request.method)
        return await handler(request.params or {})

    async def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        result = InitializeResult(
            protocol_version=self.config.server.protocol_version,
            capabilities=server_capabilities(),
            server_info=ServerInfo(name=self.config.app.name, version=self.config.app.version),
        )
        return result.model_dump(by_alias=True)

    async def _empty(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _prompts_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"prompts": []}

    async def _resources_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"resources": []}

    async def _tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": self.registry.list()}

    async def _tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tool = self.registry.resolve(params.get("name"))
        arguments = params.get("arguments")
        if arguments is not None and not isinstance(arguments, dict):
            raise InvalidArgumentError("arguments must be an object")
        validated = validate_arguments(tool.input_schema, arguments)

        try:
            with trace_mcp_tool(tool.name, validated):
                value = await tool.handler(self.context, validated)
        except ToolError as exc:
            logger.info("Tool reported error", tool=tool.name, error=exc.message)
            value = exc.payload()

        return text_content(value)


def _first_validation_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid request"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid')}" if location else first.get("msg", "invalid")
