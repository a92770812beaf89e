"""Static tool registry with a deployment-time enabled subset."""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from src.mcp_server.handlers import TOOL_HANDLERS, Handler
from src.mcp_server.tool_definitions import TOOL_DEFINITIONS
from src.shared.errors import UnknownToolError
from src.shared.observability import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RegisteredTool:
    name: str
    description: str
    input_schema: Mapping[str, Any]
    handler: Handler

    def descriptor(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """
    Name -> {schema, handler} mapping fixed at construction.

    ``list()`` preserves declaration order. ``enabled`` restricts the exposed
    tools; an empty or missing list exposes all of them.
    """

    def __init__(
        self,
        definitions: Sequence[Mapping[str, Any]] = TOOL_DEFINITIONS,
        handlers: Mapping[str, Handler] = TOOL_HANDLERS,
        enabled: Optional[Iterable[str]] = None,
    ):
        enabled_names = set(enabled or [])
        known = {definition["name"] for definition in definitions}
        unknown = enabled_names - known
        if unknown:
            raise ValueError(f"Enabled tools are not registered: {sorted(unknown)}")

        self._tools: Dict[str, RegisteredTool] = {}
        for definition in definitions:
            name = definition["name"]
            if enabled_names and name not in enabled_names:
                continue
            if name not in handlers:
                raise ValueError(f"No handler registered for tool: {name}")
            self._tools[name] = RegisteredTool(
                name=name,
                description=definition["description"],
                input_schema=definition["inputSchema"],
                handler=handlers[name],
            )

        logger.debug("Tool registry built", tools=len(self._tools))

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def list(self) -> List[Dict[str, Any]]:
        return [tool.descriptor() for tool in self._tools.values()]

    def resolve(self, name: Any) -> RegisteredTool:
        if not isinstance(name, str) or name not in self._tools:
            raise UnknownToolError(name)
        return self._tools[name]
