from __future__ import annotations

import time
from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx

from src.shared.config import Config, Settings
from src.shared.errors import NotConfiguredError, UpstreamUnavailableError
from src.shared.observability import get_logger, trace_gateway_request

logger = get_logger(__name__)

QueryParams = Mapping[str, str]


class DataGateway(Protocol):
    """Read-only capability over the upstream relational store.

    Tool handlers depend only on this interface so tests can substitute an
    in-memory fake.
    """

    @property
    def configured(self) -> bool: ...

    async def select(self, table: str, params: QueryParams) -> List[Dict[str, Any]]: ...

    async def count(self, table: str, params: Optional[QueryParams] = None) -> int: ...

    async def rpc(self, function: str, payload: Dict[str, Any]) -> Any: ...


def parse_content_range(header: Optional[str]) -> int:
    """Return the total from a PostgREST ``Content-Range`` header.

    ``"0-24/3573"`` and ``"*/3573"`` both yield 3573; a missing or unknown
    total (``"0-24/*"``) yields 0.
    """
    if not header or "/" not in header:
        return 0
    total = header.rsplit("/", 1)[1].strip()
    try:
        return int(total)
    except ValueError:
        return 0


class GatewayClient:
    """Async client for the Supabase PostgREST interface.

    Every request carries ``apikey`` and ``Authorization: Bearer`` headers.
    Network failures and non-2xx responses raise
    :class:`UpstreamUnavailableError`; a missing URL or key raises
    :class:`NotConfiguredError` before any request is made.
    """

    def __init__(
        self,
        base_url: Optional[str],
        api_key: Optional[str],
        rest_path: str = "/rest/v1",
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/") if base_url else None
        self.api_key = api_key
        self.rest_path = rest_path
        self._timeout = timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.base_url and self.api_key)

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.api_key or "",
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    def _ensure_client(self) -> httpx.AsyncClient:
        if not self.base_url:
            raise NotConfiguredError("SUPABASE_URL")
        if not self.api_key:
            raise NotConfiguredError("SUPABASE_SERVICE_ROLE_KEY")
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}{self.rest_path}",
                timeout=self._timeout,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        operation: str,
        resource: str,
        **kwargs: Any,
    ) -> httpx.Response:
        client = self._ensure_client()
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        start = time.time()

        with trace_gateway_request(operation, resource):
            try:
                response = await client.request(method, path, headers=headers, **kwargs)
            except httpx.HTTPError as exc:
                logger.warning(
                    "Gateway request failed",
                    operation=operation,
                    resource=resource,
                    error=str(exc),
                )
                raise UpstreamUnavailableError(str(exc) or type(exc).__name__) from exc

            latency_ms = round((time.time() - start) * 1000, 2)
            if not response.is_success:
                logger.warning(
                    "Gateway returned error status",
                    operation=operation,
                    resource=resource,
                    status_code=response.status_code,
                    latency_ms=latency_ms,
                )
                raise UpstreamUnavailableError(
                    str(response.status_code), status_code=response.status_code
                )

        logger.debug(
            "Gateway request completed",
            operation=operation,
            resource=resource,
            status_code=response.status_code,
            latency_ms=latency_ms,
        )
        return response

    async def select(self, table: str, params: QueryParams) -> List[Dict[str, Any]]:
        """Filtered row read: ``GET /<table>?<predicates>``."""
        response = await self._request(
            "GET", f"/{table}", "select", table, params=dict(params)
        )
        rows = response.json()
        return rows if isinstance(rows, list) else []

    async def count(self, table: str, params: Optional[QueryParams] = None) -> int:
        """Exact row count read from ``Content-Range`` of a ``HEAD`` request."""
        response = await self._request(
            "HEAD",
            f"/{table}",
            "count",
            table,
            params=dict(params or {}),
            headers={"Prefer": "count=exact"},
        )
        return parse_content_range(response.headers.get("content-range"))

    async def rpc(self, function: str, payload: Dict[str, Any]) -> Any:
        """Remote procedure call: ``POST /rpc/<function>`` with a JSON body."""
        response = await self._request(
            "POST", f"/rpc/{function}", "rpc", function, json=payload
        )
        return response.json()


def create_gateway(config: Config, settings: Settings) -> GatewayClient:
    return GatewayClient(
        base_url=settings.supabase_url,
        api_key=settings.supabase_service_role_key,
        rest_path=config.gateway.rest_path,
        timeout=config.gateway.timeout_seconds,
    )


__all__ = [
    "DataGateway",
    "GatewayClient",
    "create_gateway",
    "parse_content_range",
]
