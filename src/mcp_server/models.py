# MCP protocol and HTTP surface models

from typing import Any, Dict, List, Optional

from pydantic import Field

from src.shared.models import CaseFileBaseModel

JSONRPC_VERSION = "2.0"


# JSON-RPC envelope


class JsonRpcRequest(CaseFileBaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    method: str
    params: Optional[Dict[str, Any]] = None


class JsonRpcErrorBody(CaseFileBaseModel):
    code: int
    message: str


class JsonRpcResponse(CaseFileBaseModel):
    jsonrpc: str = JSONRPC_VERSION
    id: Any = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[JsonRpcErrorBody] = None

    def to_wire(self) -> Dict[str, Any]:
        # Exactly one of result/error; id is always present, even when null
        body: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            body["error"] = self.error.model_dump()
        else:
            body["result"] = self.result if self.result is not None else {}
        return body


# MCP method results


class ServerInfo(CaseFileBaseModel):
    name: str
    version: str


class InitializeResult(CaseFileBaseModel):
    protocol_version: str = Field(serialization_alias="protocolVersion")
    capabilities: Dict[str, Any]
    authorization: Dict[str, Any] = Field(default_factory=lambda: {"type": "none"})
    server_info: ServerInfo = Field(serialization_alias="serverInfo")


def server_capabilities() -> Dict[str, Any]:
    return {
        "tools": {"listChanged": False},
        "prompts": {"listChanged": False},
        "resources": {"listChanged": False},
    }


# HTTP surface


class HealthResponse(CaseFileBaseModel):
    status: str
    timestamp: str
    version: str
    configured: bool


class StatusResponse(CaseFileBaseModel):
    status: str = "ready"
    protocol: str
    tools: int
    configured: bool


class DiscoveryDocument(CaseFileBaseModel):
    mcp_version: str = Field(serialization_alias="mcpVersion")
    name: str
    description: str
    vendor: Optional[str] = None
    authorization: Dict[str, Any] = Field(default_factory=lambda: {"type": "none"})
    capabilities: Dict[str, Any] = Field(default_factory=server_capabilities)
    tools: List[str] = Field(default_factory=list)
