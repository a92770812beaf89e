"""
Error taxonomy for tool dispatch.

Two families:

* Protocol errors (``InvalidArgumentError``, ``UnknownToolError``) become
  JSON-RPC error objects.
* Tool errors (``ToolError`` subclasses) are reported inside a successful
  tool result as ``{"error": ...}`` so callers can recover from them.
"""

from typing import Any, Dict, Optional

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


class ProtocolError(Exception):
    """Base class for failures surfaced as JSON-RPC error objects."""

    code: int = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ParseError(ProtocolError):
    code = PARSE_ERROR

    def __init__(self, detail: str) -> None:
        super().__init__(f"Parse error: {detail}")


class InvalidRequestError(ProtocolError):
    code = INVALID_REQUEST

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid Request: {detail}")


class MethodNotFoundError(ProtocolError):
    code = METHOD_NOT_FOUND

    def __init__(self, method: Any) -> None:
        self.method = method
        super().__init__(f"Method not found: {method}")


class InvalidArgumentError(ProtocolError):
    """Raised when tool arguments fail schema validation."""

    code = INVALID_PARAMS

    def __init__(self, reason: str, parameter: Optional[str] = None) -> None:
        self.reason = reason
        self.parameter = parameter
        if parameter:
            message = f"Invalid argument '{parameter}': {reason}"
        else:
            message = f"Invalid arguments: {reason}"
        super().__init__(message)


class UnknownToolError(ProtocolError):
    """Raised when ``tools/call`` names a tool that is not registered."""

    code = METHOD_NOT_FOUND

    def __init__(self, name: Any) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ToolError(Exception):
    """Base class for failures reported inside a tool result."""

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def payload(self) -> Dict[str, Any]:
        return {**self.context, "error": self.message}


class UpstreamUnavailableError(ToolError):
    """Network failure or non-success status from the upstream gateway."""

    def __init__(
        self,
        reason: str,
        status_code: Optional[int] = None,
        **context: Any,
    ) -> None:
        self.reason = reason
        self.status_code = status_code
        super().__init__(reason, **context)

    def relabel(self, prefix: str) -> "UpstreamUnavailableError":
        return UpstreamUnavailableError(
            f"{prefix}: {self.reason}", self.status_code, **self.context
        )


class NotFoundError(ToolError):
    """A validated lookup matched no record."""


class NotConfiguredError(ToolError):
    """Gateway URL or credential is missing."""

    def __init__(self, missing: str) -> None:
        self.missing = missing
        super().__init__(f"Database not configured: {missing} is not set")
