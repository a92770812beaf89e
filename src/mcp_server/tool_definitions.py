"""
Static tool descriptors served by ``tools/list``.

Order here is the order clients see. Schemas are JSON Schema objects; the
constraints they declare (required, type, default, enum, minimum, maximum)
are the ones enforced by ``src.mcp_server.validation``.
"""

from typing import Any, Dict, List

CASE_TYPES = ["Floorable", "Mannington"]

SEARCH_OPTIONS_SCHEMA = {
    "type": "object",
    "description": "Legacy paging options; top-level limit/offset take precedence",
    "properties": {
        "limit": {"type": "integer", "default": 20, "minimum": 1, "maximum": 100},
        "offset": {"type": "integer", "default": 0, "minimum": 0},
    },
}

SEARCH_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "Natural language search query"},
        "limit": {"type": "integer", "default": 20, "minimum": 1, "maximum": 100},
        "offset": {"type": "integer", "default": 0, "minimum": 0},
        "options": SEARCH_OPTIONS_SCHEMA,
    },
    "required": ["query"],
}

FETCH_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {
            "type": "string",
            "description": "Resource ID (Ex###, FL_*, MN_*, claim_*, fact_*, numeric, or document id)",
        },
    },
    "required": ["id"],
}

VECTOR_SEARCH_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "Search query text"},
        "limit": {"type": "integer", "default": 20, "minimum": 1, "maximum": 100},
        "threshold": {
            "type": "number",
            "default": 0.7,
            "minimum": 0,
            "maximum": 1,
            "description": "Similarity threshold",
        },
    },
    "required": ["query"],
}

KEYWORD_SEARCH_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "query": {"type": "string", "description": "Keyword search query"},
        "limit": {"type": "integer", "default": 20, "minimum": 1, "maximum": 100},
    },
    "required": ["query"],
}

FETCH_EXHIBIT_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string", "description": "Exhibit ID (e.g., Ex001, FL_exhibit_001)"},
    },
    "required": ["id"],
}

LIST_EXHIBITS_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "case_type": {"type": "string", "enum": CASE_TYPES, "description": "Filter by case type"},
        "limit": {"type": "integer", "default": 50, "minimum": 1, "maximum": 200},
        "offset": {"type": "integer", "default": 0, "minimum": 0},
    },
}

FETCH_CLAIM_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "claim_id": {"type": "string", "description": "Claim ID (e.g., claim_001, 123)"},
    },
    "required": ["claim_id"],
}

LIST_CLAIMS_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "claim_type": {"type": "string", "description": "Filter by claim type"},
        "status": {"type": "string", "description": "Filter by status"},
        "limit": {"type": "integer", "default": 50, "minimum": 1, "maximum": 200},
    },
}

FACTS_BY_CLAIM_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "claim_id": {"type": "string", "description": "Claim ID"},
        "fact_type": {"type": "string", "description": "Optional fact type filter"},
        "includeMetadata": {
            "type": "boolean",
            "default": False,
            "description": "Include full metadata",
        },
    },
    "required": ["claim_id"],
}

FACTS_BY_EXHIBIT_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "exhibit_id": {"type": "string", "description": "Exhibit ID"},
        "fact_type": {"type": "string", "description": "Optional fact type filter"},
    },
    "required": ["exhibit_id"],
}

CLAIM_RISK_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "claim_id": {"type": "string", "description": "Claim ID to analyze"},
    },
    "required": ["claim_id"],
}

EXHIBIT_RELATIONSHIPS_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "exhibit_id": {"type": "string", "description": "Starting exhibit ID"},
        "depth": {
            "type": "integer",
            "default": 1,
            "minimum": 1,
            "maximum": 3,
            "description": "Relationship depth",
        },
    },
    "required": ["exhibit_id"],
}

ENTITIES_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "entity_type": {"type": "string", "description": "Filter by entity type"},
        "role": {"type": "string", "description": "Filter by role in case"},
    },
}

INDIVIDUALS_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "role": {
            "type": "string",
            "description": "Filter by role (e.g., plaintiff, defendant, witness)",
        },
        "entity_id": {"type": "string", "description": "Filter by associated entity"},
    },
}

CASE_STATISTICS_INPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "case_name": {
            "type": "string",
            "description": "Optional case filter (Floorable or Mannington)",
        },
    },
}


TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": "search",
        "description": "Vector-first search with keyword fallback across all legal documents",
        "inputSchema": SEARCH_INPUT_SCHEMA,
    },
    {
        "name": "fetch",
        "description": "Fetch any resource by ID (exhibit, claim, document, fact)",
        "inputSchema": FETCH_INPUT_SCHEMA,
    },
    {
        "name": "vector_search_embeddings",
        "description": "Direct pgvector semantic search using embeddings",
        "inputSchema": VECTOR_SEARCH_INPUT_SCHEMA,
    },
    {
        "name": "keyword_search",
        "description": "Keyword-based search on exhibits using ilike patterns",
        "inputSchema": KEYWORD_SEARCH_INPUT_SCHEMA,
    },
    {
        "name": "fetch_exhibit",
        "description": "Fetch a specific exhibit by ID or exhibit_id",
        "inputSchema": FETCH_EXHIBIT_INPUT_SCHEMA,
    },
    {
        "name": "list_exhibits",
        "description": "List all exhibits with optional filtering",
        "inputSchema": LIST_EXHIBITS_INPUT_SCHEMA,
    },
    {
        "name": "fetch_claim",
        "description": "Fetch a specific claim by claim_id",
        "inputSchema": FETCH_CLAIM_INPUT_SCHEMA,
    },
    {
        "name": "list_claims",
        "description": "List all claims with optional filtering",
        "inputSchema": LIST_CLAIMS_INPUT_SCHEMA,
    },
    {
        "name": "get_facts_by_claim",
        "description": "Get all facts linked to a specific claim",
        "inputSchema": FACTS_BY_CLAIM_INPUT_SCHEMA,
    },
    {
        "name": "get_facts_by_exhibit",
        "description": "Get all facts extracted from a specific exhibit",
        "inputSchema": FACTS_BY_EXHIBIT_INPUT_SCHEMA,
    },
    {
        "name": "analyze_claim_risk",
        "description": "Analyze risk factors for a specific claim",
        "inputSchema": CLAIM_RISK_INPUT_SCHEMA,
    },
    {
        "name": "get_exhibit_relationships",
        "description": "Find related exhibits and their connections",
        "inputSchema": EXHIBIT_RELATIONSHIPS_INPUT_SCHEMA,
    },
    {
        "name": "get_entities",
        "description": "Get all entities (companies, organizations) in the case",
        "inputSchema": ENTITIES_INPUT_SCHEMA,
    },
    {
        "name": "get_individuals",
        "description": "Get all individuals involved in the case",
        "inputSchema": INDIVIDUALS_INPUT_SCHEMA,
    },
    {
        "name": "get_case_statistics",
        "description": "Get overall case statistics and summary",
        "inputSchema": CASE_STATISTICS_INPUT_SCHEMA,
    },
]

TOOL_NAMES = [definition["name"] for definition in TOOL_DEFINITIONS]
