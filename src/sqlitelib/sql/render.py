"""Render SQL text with its parameters substituted, for logs and debugging"""

import math
import re
from typing import Any, Sequence

PLACEHOLDER = "?"

_PLACEHOLDER_RE = re.compile(re.escape(PLACEHOLDER))


def quote_string(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes"""
    return "'" + value.replace("'", "''") + "'"


def format_literal(value: Any) -> str:
    """Format one bind value as an SQLite literal
    
    Supports the same parameter types as the sqlite3 module binds natively:
    None, int, float, str and bytes-like objects. bool is rejected even
    though it subclasses int. NaN renders as NULL and infinities as
    out-of-range literals, matching what SQLite stores for them.
    
    Raises:
        TypeError: If the value has any other type
    """
    if value is None:
        return "NULL"
    if isinstance(value, str):
        return quote_string(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return "X'" + bytes(value).hex() + "'"
    if isinstance(value, float):
        if math.isnan(value):
            return "NULL"
        if math.isinf(value):
            return "9e999" if value > 0 else "-9e999"
        return str(value)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise TypeError(
        f"Invalid parameter type: '{type(value).__name__}' must be "
        "int, float, str, bytes, or None"
    )


def render(text: str, params: Sequence[Any]) -> str:
    """Substitute each placeholder in text with the matching parameter
    
    Placeholders beyond the end of params are left as-is, so partially
    bound statements still render.
    
    Example:
        >>> render("SELECT * FROM t WHERE name=? AND id=?", ["O'Brien"])
        "SELECT * FROM t WHERE name='O''Brien' AND id=?"
    """
    remaining = iter(params)
    missing = object()
    
    def substitute(match: re.Match) -> str:
        value = next(remaining, missing)
        if value is missing:
            return match.group(0)
        return format_literal(value)
    
    return _PLACEHOLDER_RE.sub(substitute, text)
