# Shared fixtures: test environment, an in-memory gateway and default config

import os
import re
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# Set test environment; the gateway is faked, never reached
os.environ["ENV"] = "development"
os.environ.setdefault("SUPABASE_URL", "https://casefile.test")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")  # pragma: allowlist secret

from src.shared.config import Config  # noqa: E402
from src.shared.errors import UpstreamUnavailableError  # noqa: E402

PAGING_KEYS = {"select", "order", "limit", "offset"}


def _over_the_wire(params: Dict[str, str]) -> Dict[str, str]:
    """Encode params as the HTTP client does and decode them as a server does."""
    return dict(parse_qsl(str(httpx.QueryParams(params)), keep_blank_values=True))


def _split_top_level(raw: str) -> List[str]:
    """Split a PostgREST list on commas that are outside double quotes."""
    items: List[str] = []
    current: List[str] = []
    quoted = escaped = False
    for char in raw:
        if escaped:
            escaped = False
        elif quoted and char == "\\":
            escaped = True
        elif char == '"':
            quoted = not quoted
        elif char == "," and not quoted:
            items.append("".join(current))
            current = []
            continue
        current.append(char)
    if current:
        items.append("".join(current))
    return items


def _literal(text: str) -> str:
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return re.sub(r"\\(.)", r"\1", text[1:-1])
    return text


def _unwrap(raw: str) -> str:
    return raw[1:-1] if raw.startswith("(") and raw.endswith(")") else raw


def _match_expression(actual: Any, expression: str, in_list: bool = False) -> bool:
    op, _, raw = expression.partition(".")
    if op == "eq":
        # Top-level operands are verbatim; list members may be quoted
        value = _literal(raw) if in_list else raw
        return actual is not None and str(actual) == value
    if op == "in":
        values = [_literal(item) for item in _split_top_level(_unwrap(raw))]
        return actual is not None and str(actual) in values
    if op == "ilike":
        value = _literal(raw) if in_list else raw
        needle = value.strip("*").lower()
        return actual is not None and needle in str(actual).lower()
    raise AssertionError(f"Unsupported filter operator in test gateway: {op}")


def _match_row(row: Dict[str, Any], params: Dict[str, str]) -> bool:
    for key, value in params.items():
        if key in PAGING_KEYS:
            continue
        if key == "or":
            terms = _split_top_level(_unwrap(value))
            if not any(
                _match_expression(
                    row.get(term.split(".", 1)[0]), term.split(".", 1)[1], in_list=True
                )
                for term in terms
            ):
                return False
        elif not _match_expression(row.get(key), value):
            return False
    return True


class FakeGateway:
    """
    In-memory stand-in for the PostgREST gateway.

    Understands the predicates the handlers emit (``eq``, ``in``, ``ilike``,
    ``or=(...)``, ``limit``, ``offset``) and records every call. ``failures``
    maps a table name, or ``rpc:<function>``, to the exception to raise.
    """

    def __init__(
        self,
        tables: Optional[Dict[str, List[Dict[str, Any]]]] = None,
        rpc_results: Optional[Dict[str, Any]] = None,
        failures: Optional[Dict[str, Exception]] = None,
        configured: bool = True,
    ):
        self.tables = tables or {}
        self.rpc_results = rpc_results or {}
        self.failures = failures or {}
        self._configured = configured
        self.calls: List[tuple] = []

    @property
    def configured(self) -> bool:
        return self._configured

    def _maybe_fail(self, key: str) -> None:
        if key in self.failures:
            raise self.failures[key]

    def tables_queried(self) -> List[str]:
        return [name for op, name, _ in self.calls if op in ("select", "count")]

    async def select(self, table: str, params: Dict[str, str]) -> List[Dict[str, Any]]:
        self.calls.append(("select", table, dict(params)))
        self._maybe_fail(table)
        params = _over_the_wire(params)
        rows = [row for row in self.tables.get(table, []) if _match_row(row, params)]
        offset = int(params.get("offset", 0))
        rows = rows[offset:]
        if "limit" in params:
            rows = rows[: int(params["limit"])]
        return rows

    async def count(self, table: str, params: Optional[Dict[str, str]] = None) -> int:
        params = params or {}
        self.calls.append(("count", table, dict(params)))
        self._maybe_fail(table)
        params = _over_the_wire(params)
        return len([row for row in self.tables.get(table, []) if _match_row(row, params)])

    async def rpc(self, function: str, payload: Dict[str, Any]) -> Any:
        self.calls.append(("rpc", function, dict(payload)))
        self._maybe_fail(f"rpc:{function}")
        return self.rpc_results.get(function, [])


@pytest.fixture
def config() -> Config:
    """Default configuration (no YAML file involved)"""
    return Config()


@pytest.fixture
def make_gateway():
    """Factory for FakeGateway instances"""
    return FakeGateway


@pytest.fixture
def upstream_down():
    """Factory for an UpstreamUnavailableError with a status code"""

    def _make(status: int = 503) -> UpstreamUnavailableError:
        return UpstreamUnavailableError(str(status), status_code=status)

    return _make


@pytest.fixture
def case_tables() -> Dict[str, List[Dict[str, Any]]]:
    """A small case file shared by handler and dispatcher tests"""
    return {
        "exhibits": [
            {
                "id": "1",
                "exhibit_id": "Ex001",
                "title": "Installation invoice",
                "description": "Invoice for flooring installation",
                "content": "Invoice dated 2021-03-04 for vinyl plank installation.",
                "case_type": "Floorable",
            },
            {
                "id": "2",
                "exhibit_id": "Ex002",
                "title": "Moisture report",
                "description": "Subfloor moisture readings",
                "content": None,
                "case_type": "Mannington",
            },
            {
                "id": "3",
                "exhibit_id": "FL_exhibit_003",
                "title": "Warranty",
                "description": None,
                "content": "Limited lifetime warranty terms.",
                "case_type": "Floorable",
            },
        ],
        "claims": [
            {
                "id": "10",
                "claim_id": "claim_001",
                "claim_type": "warranty",
                "claim_title": "Breach of warranty",
                "status": "open",
                "damages_estimate": 2_000_000,
                "exhibit_ids": ["Ex001", "Ex002"],
            },
            {
                "id": "11",
                "claim_id": "claim_002",
                "claim_type": "negligence",
                "claim_title": "Negligent installation",
                "status": "closed",
                "damages_estimate": 0,
                "exhibit_ids": [],
            },
            {
                "id": "Ex042",
                "claim_id": "claim_042",
                "claim_type": "misc",
                "status": "open",
                "damages_estimate": 100_000,
                "exhibit_ids": ["Ex001"],
            },
        ],
        "facts": [
            {
                "id": "100",
                "fact_text": "Installer skipped moisture testing.",
                "fact_type": "event",
                "claim_id": "10",
                "source_exhibit_id": "Ex001",
            },
            {
                "id": "101",
                "fact_text": "Invoice total was $48,000.",
                "fact_type": "financial",
                "claim_id": "10",
                "source_exhibit_id": "Ex001",
            },
            {
                "id": "102",
                "fact_text": "Moisture exceeded 5 lbs.",
                "fact_type": "measurement",
                "claim_id": "11",
                "source_exhibit_id": "Ex002",
            },
        ],
        "vector_embeddings": [
            {"id": "doc-7", "content": "Deposition transcript excerpt."},
        ],
        "entities": [
            {"id": "e1", "entity_name": "Floorable LLC", "entity_type": "company", "role": "defendant"},
            {"id": "e2", "entity_name": "Burns Homes", "entity_type": "company", "role": "plaintiff"},
        ],
        "individuals": [
            {"id": "i1", "individual_name": "J. Rivera", "role": "witness", "entity_id": "e1"},
            {"id": "i2", "individual_name": "P. Burns", "role": "plaintiff", "entity_id": "e2"},
        ],
    }
