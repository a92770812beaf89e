"""
Server-Sent Events keep-alive stream.

The stream announces the server once with an ``mcp/hello`` data frame and then
emits a ``: ping`` comment every interval until the client disconnects. It
carries no other messages and makes no delivery guarantees.
"""

import asyncio
import json
from typing import Any, AsyncIterator, Dict, Optional

from src.shared.observability import get_logger

logger = get_logger(__name__)

PING_FRAME = ": ping\n\n"


def hello_message(
    protocol_version: str, server_name: str, server_version: str, capabilities: Dict[str, Any]
) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "method": "mcp/hello",
        "params": {
            "protocol": protocol_version,
            "authorization": {"type": "none"},
            "capabilities": capabilities,
            "serverInfo": {"name": server_name, "version": server_version},
        },
    }


def data_frame(message: Dict[str, Any]) -> str:
    return f"data: {json.dumps(message)}\n\n"


async def keepalive_stream(
    hello: Dict[str, Any],
    interval_seconds: float,
    max_pings: Optional[int] = None,
) -> AsyncIterator[str]:
    """Yield the hello frame, then ping comments; ``max_pings`` bounds the stream."""
    yield data_frame(hello)
    sent = 0
    try:
        while max_pings is None or sent < max_pings:
            await asyncio.sleep(interval_seconds)
            yield PING_FRAME
            sent += 1
    finally:
        logger.debug("SSE stream closed", pings_sent=sent)
