"""
PostgREST filter builders.

Values inside ``or=(...)`` and ``in.(...)`` lists are written as PostgREST
double-quoted literals, with ``"`` and ``\\`` backslash-escaped, so commas,
periods and parentheses in user input stay part of the value. Predicates are
plain text; the HTTP client URL-encodes them exactly once on the wire.
"""

from typing import Iterable, Sequence


def quote_value(value) -> str:
    """Render ``value`` as a double-quoted PostgREST list literal."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def eq(value) -> str:
    """``column=eq.value`` right-hand side."""
    # A top-level operand is taken verbatim up to the end of the parameter
    return f"eq.{value}"


def in_list(values: Iterable) -> str:
    """``column=in.(a,b,c)`` right-hand side."""
    return "in.(" + ",".join(quote_value(v) for v in values) + ")"


def or_eq(columns: Sequence[str], value) -> str:
    """Match ``value`` exactly in any of ``columns``."""
    quoted = quote_value(value)
    return "(" + ",".join(f"{column}.eq.{quoted}" for column in columns) + ")"


def or_eq_values(column: str, values: Sequence) -> str:
    """Match ``column`` against any of several candidate values."""
    return "(" + ",".join(f"{column}.eq.{quote_value(v)}" for v in values) + ")"


def or_ilike(columns: Sequence[str], term) -> str:
    """Case-insensitive substring match of ``term`` across ``columns``."""
    pattern = quote_value(f"*{term}*")
    return "(" + ",".join(f"{column}.ilike.{pattern}" for column in columns) + ")"
