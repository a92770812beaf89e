"""
Result normalization.

Upstream rows name the same field differently depending on which table or
RPC produced them (``exhibit_id`` vs ``id`` vs ``source_id``). Each output
field takes the first non-null value from a fixed list of candidate columns.
"""

import json
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from pydantic import Field

from src.shared.models import CaseFileBaseModel

SNIPPET_LENGTH = 200

RESULT_TYPES = ("exhibit", "claim", "fact", "document")

ID_FIELDS = ("exhibit_id", "id", "source_id")
TYPE_FIELDS = ("type", "source_table")
TITLE_FIELDS = ("title", "name", "description")
SNIPPET_FIELDS = ("content", "description")
SIMILARITY_FIELDS = ("similarity", "score")


class SearchResult(CaseFileBaseModel):
    id: str
    type: str = "document"
    title: str
    snippet: str = ""
    similarity: Optional[float] = Field(default=None, ge=0.0, le=1.0)

    def to_payload(self) -> Dict[str, Any]:
        # Keyword results carry no similarity at all, not a null one
        return self.model_dump(exclude_none=True)


def first_present(row: Mapping[str, Any], candidates: Sequence[str]) -> Any:
    for name in candidates:
        value = row.get(name)
        if value is not None:
            return value
    return None


def truncate_snippet(text: Any) -> str:
    if text is None:
        return ""
    return str(text)[:SNIPPET_LENGTH]


def result_type(row: Mapping[str, Any]) -> str:
    raw = first_present(row, TYPE_FIELDS)
    if raw is None:
        return "document"
    kind = str(raw).strip().lower()
    if kind.endswith("s") and kind[:-1] in RESULT_TYPES:
        kind = kind[:-1]
    return kind if kind in RESULT_TYPES else "document"


def _similarity(row: Mapping[str, Any]) -> float:
    raw = first_present(row, SIMILARITY_FIELDS)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return 0.0
    return min(max(value, 0.0), 1.0)


def normalize_vector_row(row: Mapping[str, Any]) -> SearchResult:
    title = first_present(row, TITLE_FIELDS)
    return SearchResult(
        id=str(first_present(row, ID_FIELDS) or ""),
        type=result_type(row),
        title=str(title) if title is not None else "Result",
        snippet=truncate_snippet(first_present(row, SNIPPET_FIELDS)),
        similarity=_similarity(row),
    )


def normalize_keyword_row(row: Mapping[str, Any]) -> SearchResult:
    title = first_present(row, TITLE_FIELDS)
    kind = result_type(row) if first_present(row, TYPE_FIELDS) else "exhibit"
    return SearchResult(
        id=str(first_present(row, ID_FIELDS) or ""),
        type=kind,
        title=str(title) if title is not None else "Untitled",
        snippet=truncate_snippet(first_present(row, SNIPPET_FIELDS)),
    )


def normalize_rows(rows: Iterable[Any], vector: bool) -> List[SearchResult]:
    normalize = normalize_vector_row if vector else normalize_keyword_row
    return [normalize(row) for row in rows if isinstance(row, Mapping)]


def text_content(value: Any) -> Dict[str, Any]:
    """Wrap a tool result as the single MCP text content block."""
    text = value if isinstance(value, str) else json.dumps(value, indent=2, default=str)
    return {"content": [{"type": "text", "text": text}]}
