"""
Resource lookups and id-shape resolution for the universal ``fetch`` tool.

``ResourceResolver`` evaluates an ordered list of ``(predicate, lookup)``
strategies. Only strategies whose predicate accepts the id are tried; the
first one that finds a record fixes the resource type. An ``Ex``-prefixed id
is therefore never looked up as a claim.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from src.clients.gateway_client import DataGateway
from src.query import filters
from src.shared.errors import UpstreamUnavailableError
from src.shared.observability import get_logger

logger = get_logger(__name__)

Record = Dict[str, Any]

EXHIBIT_ID_PATTERN = re.compile(r"^(Ex|FL_|MN_)", re.IGNORECASE)
CLAIM_ID_PATTERN = re.compile(r"^(claim_|\d+$)", re.IGNORECASE)
FACT_ID_PATTERN = re.compile(r"^fact_", re.IGNORECASE)

NO_CONTENT = "No content available"


async def _first_row(gateway: DataGateway, table: str, params: Dict[str, str]) -> Optional[Record]:
    rows = await gateway.select(table, {**params, "limit": "1"})
    return rows[0] if rows else None


async def fetch_exhibit_record(gateway: DataGateway, exhibit_id: str) -> Optional[Record]:
    return await _first_row(
        gateway, "exhibits", {"or": filters.or_eq(("id", "exhibit_id"), exhibit_id)}
    )


async def fetch_claim_record(gateway: DataGateway, claim_id: str) -> Optional[Record]:
    return await _first_row(
        gateway, "claims", {"or": filters.or_eq(("id", "claim_id"), claim_id)}
    )


async def fetch_fact_record(gateway: DataGateway, fact_id: str) -> Optional[Record]:
    stripped = FACT_ID_PATTERN.sub("", fact_id, count=1)
    return await _first_row(
        gateway, "facts", {"or": filters.or_eq_values("id", [stripped, fact_id])}
    )


async def fetch_document_record(
    gateway: DataGateway, document_id: str, table: str = "vector_embeddings"
) -> Optional[Record]:
    return await _first_row(gateway, table, {"id": filters.eq(document_id)})


def exhibit_content(record: Record) -> str:
    return record.get("content") or record.get("description") or NO_CONTENT


def _exhibit_envelope(resource_id: str, record: Record) -> Record:
    return {"id": resource_id, "type": "exhibit", "content": exhibit_content(record), "metadata": record}


def _claim_envelope(resource_id: str, record: Record) -> Record:
    return {
        "id": resource_id,
        "type": "claim",
        "content": json.dumps(record, indent=2, default=str),
        "metadata": record,
    }


def _fact_envelope(resource_id: str, record: Record) -> Record:
    content = record.get("fact_text") or json.dumps(record, default=str)
    return {"id": resource_id, "type": "fact", "content": content, "metadata": record}


def _document_envelope(resource_id: str, record: Record) -> Record:
    content = record.get("content") or json.dumps(record, indent=2, default=str)
    return {"id": resource_id, "type": "document", "content": content, "metadata": record}


@dataclass(frozen=True)
class ResolutionStrategy:
    """One id shape and how to look it up."""

    kind: str
    matches: Callable[[str], bool]
    lookup: Callable[[DataGateway, str], Awaitable[Optional[Record]]]
    envelope: Callable[[str, Record], Record]


class ResourceResolver:
    def __init__(self, gateway: DataGateway, document_table: str = "vector_embeddings"):
        self.gateway = gateway
        self.document_table = document_table
        self.strategies: List[ResolutionStrategy] = [
            ResolutionStrategy(
                "exhibit",
                lambda rid: bool(EXHIBIT_ID_PATTERN.match(rid)),
                fetch_exhibit_record,
                _exhibit_envelope,
            ),
            ResolutionStrategy(
                "claim",
                lambda rid: bool(CLAIM_ID_PATTERN.match(rid)),
                fetch_claim_record,
                _claim_envelope,
            ),
            ResolutionStrategy(
                "fact",
                lambda rid: bool(FACT_ID_PATTERN.match(rid)),
                fetch_fact_record,
                _fact_envelope,
            ),
            ResolutionStrategy(
                "document",
                lambda rid: True,
                self._fetch_document,
                _document_envelope,
            ),
        ]

    async def _fetch_document(self, gateway: DataGateway, resource_id: str) -> Optional[Record]:
        return await fetch_document_record(gateway, resource_id, self.document_table)

    def candidate_kinds(self, resource_id: str) -> List[str]:
        return [s.kind for s in self.strategies if s.matches(resource_id)]

    async def resolve(self, resource_id: str) -> Record:
        """
        Return a ResourceEnvelope for ``resource_id`` or ``{id, error}``.

        A stage whose upstream call fails counts as a miss; if nothing is
        found the last upstream failure is reported instead of "not found".
        """
        upstream_error: Optional[UpstreamUnavailableError] = None

        for strategy in self.strategies:
            if not strategy.matches(resource_id):
                continue
            try:
                record = await strategy.lookup(self.gateway, resource_id)
            except UpstreamUnavailableError as exc:
                logger.warning(
                    "Resource lookup failed",
                    kind=strategy.kind,
                    resource_id=resource_id,
                    error=exc.message,
                )
                upstream_error = exc
                continue
            if record:
                logger.debug("Resource resolved", kind=strategy.kind, resource_id=resource_id)
                return strategy.envelope(resource_id, record)

        if upstream_error is not None:
            return {"id": resource_id, "error": upstream_error.message}
        return {"id": resource_id, "error": "Resource not found"}
