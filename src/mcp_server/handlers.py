"""
Tool handlers.

Each handler receives a ``ToolContext`` (the injected gateway plus config) and
validated arguments, builds its PostgREST request(s) and returns a
JSON-serializable value. Recoverable failures are raised as ``ToolError``
subclasses and rendered by the dispatcher as soft errors.
"""

import asyncio
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List

from src.clients.gateway_client import DataGateway
from src.query import filters
from src.query.fallback_search import FallbackSearchOrchestrator, keyword_search, vector_search
from src.query.resource_resolver import (
    ResourceResolver,
    exhibit_content,
    fetch_claim_record,
    fetch_exhibit_record,
)
from src.query.risk import assess_claim_risk, unknown_risk
from src.shared.config import Config
from src.shared.errors import NotConfiguredError, NotFoundError, UpstreamUnavailableError
from src.shared.observability import get_logger

logger = get_logger(__name__)

EXHIBIT_LIST_COLUMNS = "id,exhibit_id,title,description,case_type,created_at"
CLAIM_LIST_COLUMNS = "id,claim_id,claim_type,claim_title,status,damages_estimate,created_at"
CLAIM_FACT_COLUMNS = "id,fact_text,fact_type,source_exhibit_id,created_at"
EXHIBIT_FACT_COLUMNS = "id,fact_text,fact_type,claim_id,created_at"
ENTITY_COLUMNS = "id,entity_name,entity_type,role,description,created_at"
INDIVIDUAL_COLUMNS = "id,individual_name,role,entity_id,description,created_at"


@dataclass
class ToolContext:
    gateway: DataGateway
    config: Config


Handler = Callable[[ToolContext, Dict[str, Any]], Awaitable[Any]]


@contextmanager
def upstream_errors(prefix: str):
    """Prefix gateway failures with the operation that was attempted."""
    try:
        yield
    except UpstreamUnavailableError as exc:
        raise exc.relabel(prefix) from exc


def _add_eq(params: Dict[str, str], column: str, value: Any) -> None:
    if value is not None:
        params[column] = filters.eq(value)


# Search


async def handle_search(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    orchestrator = FallbackSearchOrchestrator(
        ctx.gateway,
        threshold=ctx.config.search.vector_threshold,
        vector_function=ctx.config.gateway.vector_search_function,
    )
    return await orchestrator.search(args["query"], limit=args["limit"], offset=args["offset"])


async def handle_vector_search(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    with upstream_errors("Vector search failed"):
        results = await vector_search(
            ctx.gateway,
            args["query"],
            args["limit"],
            threshold=args["threshold"],
            function=ctx.config.gateway.vector_search_function,
        )
    return {"results": [r.to_payload() for r in results], "resultCount": len(results)}


async def handle_keyword_search(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    with upstream_errors("Keyword search failed"):
        results = await keyword_search(ctx.gateway, args["query"], args["limit"])
    return {"results": [r.to_payload() for r in results], "resultCount": len(results)}


async def handle_fetch(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    resolver = ResourceResolver(ctx.gateway, ctx.config.gateway.document_table)
    return await resolver.resolve(args["id"])


# Exhibits and claims


async def handle_fetch_exhibit(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    exhibit_id = args["id"]
    with upstream_errors("Failed to fetch exhibit"):
        record = await fetch_exhibit_record(ctx.gateway, exhibit_id)
    if not record:
        raise NotFoundError(f"Exhibit {exhibit_id} not found", id=exhibit_id)
    return {
        "id": record.get("id") or record.get("exhibit_id"),
        "type": "exhibit",
        "title": record.get("title"),
        "content": exhibit_content(record),
        "metadata": record,
    }


async def handle_list_exhibits(ctx: ToolContext, args: Dict[str, Any]) -> List[Dict[str, Any]]:
    params = {
        "select": EXHIBIT_LIST_COLUMNS,
        "limit": str(args["limit"]),
        "offset": str(args["offset"]),
        "order": "exhibit_id",
    }
    _add_eq(params, "case_type", args.get("case_type"))
    with upstream_errors("Failed to list exhibits"):
        return await ctx.gateway.select("exhibits", params)


async def handle_fetch_claim(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    claim_id = args["claim_id"]
    with upstream_errors("Failed to fetch claim"):
        record = await fetch_claim_record(ctx.gateway, claim_id)
    if not record:
        raise NotFoundError(f"Claim {claim_id} not found", claim_id=claim_id)
    return {"claim": record}


async def handle_list_claims(ctx: ToolContext, args: Dict[str, Any]) -> List[Dict[str, Any]]:
    params = {
        "select": CLAIM_LIST_COLUMNS,
        "limit": str(args["limit"]),
        "order": "claim_id",
    }
    _add_eq(params, "claim_type", args.get("claim_type"))
    _add_eq(params, "status", args.get("status"))
    with upstream_errors("Failed to list claims"):
        return await ctx.gateway.select("claims", params)


# Facts


async def handle_facts_by_claim(ctx: ToolContext, args: Dict[str, Any]) -> List[Dict[str, Any]]:
    params = {
        "claim_id": filters.eq(args["claim_id"]),
        "select": "*" if args["includeMetadata"] else CLAIM_FACT_COLUMNS,
    }
    _add_eq(params, "fact_type", args.get("fact_type"))
    with upstream_errors("Failed to fetch facts"):
        return await ctx.gateway.select("facts", params)


async def handle_facts_by_exhibit(ctx: ToolContext, args: Dict[str, Any]) -> List[Dict[str, Any]]:
    params = {
        "source_exhibit_id": filters.eq(args["exhibit_id"]),
        "select": EXHIBIT_FACT_COLUMNS,
    }
    _add_eq(params, "fact_type", args.get("fact_type"))
    with upstream_errors("Failed to fetch facts"):
        return await ctx.gateway.select("facts", params)


# Analysis


async def handle_claim_risk(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    claim_id = args["claim_id"]
    try:
        record = await fetch_claim_record(ctx.gateway, claim_id)
    except UpstreamUnavailableError as exc:
        return unknown_risk(claim_id, exc.relabel("Failed to fetch claim").message)
    except NotConfiguredError as exc:
        return unknown_risk(claim_id, exc.message)
    if not record:
        return unknown_risk(claim_id, "Claim not found")
    return assess_claim_risk(claim_id, record)


def _unique(values) -> List[Any]:
    seen = []
    for value in values:
        if value is not None and value not in seen:
            seen.append(value)
    return seen


async def handle_exhibit_relationships(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    exhibit_id = args["exhibit_id"]
    depth = args["depth"]

    # Only the first hop is computed; depth is echoed back unchanged
    with upstream_errors("Failed to fetch relationships"):
        facts = await ctx.gateway.select(
            "facts", {"source_exhibit_id": filters.eq(exhibit_id), "select": "claim_id"}
        )
    claim_ids = _unique(fact.get("claim_id") for fact in facts)

    related_exhibits: List[Any] = []
    if claim_ids:
        with upstream_errors("Failed to fetch claims"):
            claims = await ctx.gateway.select(
                "claims",
                {"id": filters.in_list(claim_ids), "select": "id,claim_id,exhibit_ids"},
            )
        linked = (eid for claim in claims for eid in (claim.get("exhibit_ids") or []))
        related_exhibits = [eid for eid in _unique(linked) if eid != exhibit_id]

    return {
        "exhibit_id": exhibit_id,
        "related_claims": claim_ids,
        "related_exhibits": related_exhibits,
        "depth": depth,
    }


# Parties


async def handle_entities(ctx: ToolContext, args: Dict[str, Any]) -> List[Dict[str, Any]]:
    params = {"select": ENTITY_COLUMNS}
    _add_eq(params, "entity_type", args.get("entity_type"))
    _add_eq(params, "role", args.get("role"))
    with upstream_errors("Failed to fetch entities"):
        return await ctx.gateway.select("entities", params)


async def handle_individuals(ctx: ToolContext, args: Dict[str, Any]) -> List[Dict[str, Any]]:
    params = {"select": INDIVIDUAL_COLUMNS}
    _add_eq(params, "role", args.get("role"))
    _add_eq(params, "entity_id", args.get("entity_id"))
    with upstream_errors("Failed to fetch individuals"):
        return await ctx.gateway.select("individuals", params)


async def handle_case_statistics(ctx: ToolContext, args: Dict[str, Any]) -> Dict[str, Any]:
    case_name = args.get("case_name")
    exhibit_params: Dict[str, str] = {}
    _add_eq(exhibit_params, "case_type", case_name)

    with upstream_errors("Failed to fetch statistics"):
        total_exhibits, total_claims, total_facts = await asyncio.gather(
            ctx.gateway.count("exhibits", exhibit_params),
            ctx.gateway.count("claims"),
            ctx.gateway.count("facts"),
        )

    return {
        "case_name": case_name or "All Cases",
        "statistics": {
            "total_exhibits": total_exhibits,
            "total_claims": total_claims,
            "total_facts": total_facts,
            "database_configured": True,
        },
    }


TOOL_HANDLERS: Dict[str, Handler] = {
    "search": handle_search,
    "fetch": handle_fetch,
    "vector_search_embeddings": handle_vector_search,
    "keyword_search": handle_keyword_search,
    "fetch_exhibit": handle_fetch_exhibit,
    "list_exhibits": handle_list_exhibits,
    "fetch_claim": handle_fetch_claim,
    "list_claims": handle_list_claims,
    "get_facts_by_claim": handle_facts_by_claim,
    "get_facts_by_exhibit": handle_facts_by_exhibit,
    "analyze_claim_risk": handle_claim_risk,
    "get_exhibit_relationships": handle_exhibit_relationships,
    "get_entities": handle_entities,
    "get_individuals": handle_individuals,
    "get_case_statistics": handle_case_statistics,
}
