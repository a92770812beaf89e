"""
Vector-then-keyword search.

The vector attempt succeeds only when the RPC returns and yields at least one
normalized result. A failed or empty vector attempt falls through to a
substring match over exhibit title, description and content. The returned
``method`` names the path that produced the results. When neither path can
answer (upstream down or gateway not configured) the result keeps its shape
and carries an ``error``.
"""

from typing import Any, Dict, List, Optional

from src.clients.gateway_client import DataGateway
from src.query import filters
from src.query.normalizer import SearchResult, normalize_rows
from src.shared.errors import ToolError
from src.shared.observability import get_logger
from src.shared.observability.metrics import search_method_total

logger = get_logger(__name__)

KEYWORD_TABLE = "exhibits"
KEYWORD_COLUMNS = ("title", "description", "content")
DEFAULT_THRESHOLD = 0.7


async def vector_search(
    gateway: DataGateway,
    query: str,
    limit: int,
    threshold: float = DEFAULT_THRESHOLD,
    function: str = "vector_search",
) -> List[SearchResult]:
    rows = await gateway.rpc(
        function,
        {"query_text": query, "match_count": limit, "threshold": threshold},
    )
    return normalize_rows(rows if isinstance(rows, list) else [], vector=True)


async def keyword_search(
    gateway: DataGateway,
    query: str,
    limit: int,
    offset: int = 0,
) -> List[SearchResult]:
    params = {
        "or": filters.or_ilike(KEYWORD_COLUMNS, query),
        "limit": str(limit),
    }
    if offset:
        params["offset"] = str(offset)
    rows = await gateway.select(KEYWORD_TABLE, params)
    return normalize_rows(rows, vector=False)


class FallbackSearchOrchestrator:
    """Two-state search policy with no memory between calls."""

    def __init__(
        self,
        gateway: DataGateway,
        threshold: float = DEFAULT_THRESHOLD,
        vector_function: str = "vector_search",
    ):
        self.gateway = gateway
        self.threshold = threshold
        self.vector_function = vector_function

    async def search(self, query: str, limit: int = 20, offset: int = 0) -> Dict[str, Any]:
        vector_error: Optional[ToolError] = None

        try:
            matches = await vector_search(
                self.gateway,
                query,
                limit + offset,
                threshold=self.threshold,
                function=self.vector_function,
            )
        except ToolError as exc:
            vector_error = exc
            logger.info("Vector search failed, falling back to keyword", error=exc.message)
        else:
            results = matches[offset : offset + limit]
            if results:
                return self._payload(results, "vector")
            logger.debug("Vector search returned no results, falling back to keyword")

        try:
            results = await keyword_search(self.gateway, query, limit, offset)
        except ToolError as exc:
            error = vector_error or exc
            logger.warning(
                "Keyword fallback failed",
                vector_error=vector_error.message if vector_error else None,
                keyword_error=exc.message,
            )
            payload = self._payload([], "keyword")
            payload["error"] = error.message
            return payload

        return self._payload(results, "keyword")

    @staticmethod
    def _payload(results: List[SearchResult], method: str) -> Dict[str, Any]:
        search_method_total.labels(method=method).inc()
        return {
            "results": [result.to_payload() for result in results],
            "resultCount": len(results),
            "method": method,
        }
