"""
Tests for the JSON-RPC dispatcher.
"""

import json

import pytest

from src.mcp_server.dispatcher import RpcDispatcher
from src.mcp_server.registry import ToolRegistry
from src.shared.errors import NotConfiguredError


@pytest.fixture
def dispatcher(make_gateway, case_tables, config):
    return RpcDispatcher(ToolRegistry(), make_gateway(tables=case_tables), config)


def tool_call(name, arguments=None, request_id=1):
    params = {"name": name}
    if arguments is not None:
        params["arguments"] = arguments
    return {"jsonrpc": "2.0", "id": request_id, "method": "tools/call", "params": params}


def payload_of(response):
    content = response["result"]["content"]
    assert len(content) == 1
    assert content[0]["type"] == "text"
    return json.loads(content[0]["text"])


class TestEnvelope:
    """Framing-level errors."""

    @pytest.mark.asyncio
    async def test_malformed_json(self, dispatcher):
        response = await dispatcher.handle_raw(b'{"jsonrpc": "2.0", "id": 1,')
        assert response["error"]["code"] == -32700
        assert response["error"]["message"].startswith("Parse error")
        assert response["id"] is None

    @pytest.mark.asyncio
    async def test_empty_body(self, dispatcher):
        response = await dispatcher.handle_raw(b"")
        assert response["error"]["code"] == -32700

    @pytest.mark.asyncio
    async def test_non_object_body(self, dispatcher):
        response = await dispatcher.handle_raw(b"[1, 2]")
        assert response["error"]["code"] == -32600

    @pytest.mark.asyncio
    async def test_missing_method(self, dispatcher):
        response = await dispatcher.handle({"jsonrpc": "2.0", "id": 5})
        assert response["error"]["code"] == -32600
        assert response["id"] == 5

    @pytest.mark.asyncio
    async def test_unknown_method(self, dispatcher):
        response = await dispatcher.handle({"jsonrpc": "2.0", "id": 2, "method": "tools/destroy"})
        assert response["error"] == {"code": -32601, "message": "Method not found: tools/destroy"}


class TestNotifications:
    """Requests without an id produce no body."""

    @pytest.mark.asyncio
    async def test_missing_id(self, dispatcher):
        assert await dispatcher.handle({"jsonrpc": "2.0", "method": "initialized"}) is None

    @pytest.mark.asyncio
    async def test_null_id(self, dispatcher):
        assert await dispatcher.handle({"jsonrpc": "2.0", "id": None, "method": "tools/list"}) is None

    @pytest.mark.asyncio
    async def test_failing_notification_is_silent(self, dispatcher):
        assert await dispatcher.handle({"jsonrpc": "2.0", "method": "nope"}) is None


class TestLifecycleMethods:
    """initialize and the supplementary listing methods."""

    @pytest.mark.asyncio
    async def test_initialize(self, dispatcher):
        response = await dispatcher.handle({"jsonrpc": "2.0", "id": "a", "method": "initialize"})
        result = response["result"]

        assert response["id"] == "a"
        assert result["protocolVersion"] == "2025-06-18"
        assert result["serverInfo"] == {"name": "casefile-mcp", "version": "1.0.0"}
        assert result["authorization"] == {"type": "none"}
        assert "tools" in result["capabilities"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method, expected",
        [
            ("initialized", {}),
            ("ping", {}),
            ("prompts/list", {"prompts": []}),
            ("resources/list", {"resources": []}),
        ],
    )
    async def test_static_methods(self, dispatcher, method, expected):
        response = await dispatcher.handle({"jsonrpc": "2.0", "id": 1, "method": method})
        assert response == {"jsonrpc": "2.0", "id": 1, "result": expected}

    @pytest.mark.asyncio
    async def test_tools_list_stable(self, dispatcher):
        request = {"jsonrpc": "2.0", "id": 1, "method": "tools/list"}
        first = await dispatcher.handle(request)
        second = await dispatcher.handle(request)

        assert first == second
        assert len(first["result"]["tools"]) == 15


class TestToolCalls:
    """tools/call success, soft errors and protocol errors."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, dispatcher):
        response = await dispatcher.handle(tool_call("drop_everything", {}))
        assert response["error"]["code"] == -32601
        assert response["error"]["message"] == "Unknown tool: drop_everything"

    @pytest.mark.asyncio
    async def test_invalid_arguments_never_reach_gateway(self, make_gateway, config):
        gateway = make_gateway()
        dispatcher = RpcDispatcher(ToolRegistry(), gateway, config)
        response = await dispatcher.handle(tool_call("search", {"query": "q", "limit": 0}))

        assert response["error"]["code"] == -32602
        assert "limit" in response["error"]["message"]
        assert gateway.calls == []

    @pytest.mark.asyncio
    async def test_missing_required_argument(self, dispatcher):
        response = await dispatcher.handle(tool_call("fetch"))
        assert response["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_arguments_must_be_object(self, dispatcher):
        response = await dispatcher.handle(tool_call("fetch", "Ex001"))
        assert response["error"]["code"] == -32602

    @pytest.mark.asyncio
    async def test_success_wraps_single_text_block(self, dispatcher):
        response = await dispatcher.handle(tool_call("fetch", {"id": "Ex001"}))
        payload = payload_of(response)

        assert payload["type"] == "exhibit"
        assert payload["id"] == "Ex001"

    @pytest.mark.asyncio
    async def test_not_found_is_soft(self, dispatcher):
        response = await dispatcher.handle(tool_call("fetch_claim", {"claim_id": "claim_404"}))
        assert "error" not in response
        assert payload_of(response) == {"claim_id": "claim_404", "error": "Claim claim_404 not found"}

    @pytest.mark.asyncio
    async def test_upstream_failure_is_soft(self, make_gateway, config, upstream_down):
        gateway = make_gateway(failures={"claims": upstream_down(502)})
        dispatcher = RpcDispatcher(ToolRegistry(), gateway, config)
        response = await dispatcher.handle(tool_call("list_claims", {}))

        assert payload_of(response) == {"error": "Failed to list claims: 502"}

    @pytest.mark.asyncio
    async def test_unreachable_gateway_search_is_soft(self, make_gateway, config, upstream_down):
        gateway = make_gateway(
            failures={"rpc:vector_search": upstream_down(504), "exhibits": upstream_down(504)}
        )
        dispatcher = RpcDispatcher(ToolRegistry(), gateway, config)
        payload = payload_of(await dispatcher.handle(tool_call("search", {"query": "mold"})))

        assert payload == {"results": [], "resultCount": 0, "method": "keyword", "error": "504"}

    @pytest.mark.asyncio
    async def test_not_configured_is_soft(self, make_gateway, config):
        gateway = make_gateway(
            failures={"exhibits": NotConfiguredError("SUPABASE_SERVICE_ROLE_KEY")},
            configured=False,
        )
        dispatcher = RpcDispatcher(ToolRegistry(), gateway, config)
        payload = payload_of(await dispatcher.handle(tool_call("list_exhibits", {})))

        assert payload == {"error": "Database not configured: SUPABASE_SERVICE_ROLE_KEY is not set"}

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_internal_error(self, make_gateway, config):
        gateway = make_gateway(failures={"entities": RuntimeError("kaboom")})
        dispatcher = RpcDispatcher(ToolRegistry(), gateway, config)
        response = await dispatcher.handle(tool_call("get_entities", {}))

        assert response["error"]["code"] == -32603
        assert "kaboom" in response["error"]["message"]

    @pytest.mark.asyncio
    async def test_disabled_tool_is_unknown(self, make_gateway, config):
        dispatcher = RpcDispatcher(ToolRegistry(enabled=["search"]), make_gateway(), config)
        response = await dispatcher.handle(tool_call("fetch", {"id": "Ex001"}))
        assert response["error"]["code"] == -32601
