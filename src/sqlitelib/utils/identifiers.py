"""Utilities for quoting SQLite identifiers and filtering column keys"""

import re
from typing import Any, Iterator, Mapping

# Keys starting with one of these mark control entries, not columns
RESERVED_PREFIXES = ("$", ".")


def is_valid_identifier(name: str) -> bool:
    """Check if a string is a valid unquoted SQLite identifier"""
    if not name:
        return False
    
    pattern = r'^[A-Za-z_][A-Za-z0-9_]*$'
    return bool(re.match(pattern, name))


def quote_identifier(name: str) -> str:
    """Quote a table, column or index name with backticks"""
    return "`" + str(name).replace("`", "``") + "`"


def is_reserved_key(key: Any) -> bool:
    """True for mapping keys that name operators or meta entries"""
    return isinstance(key, str) and key.startswith(RESERVED_PREFIXES)


def column_items(values: Mapping[str, Any]) -> Iterator[tuple[str, Any]]:
    """Iterate (column, value) pairs, skipping reserved keys"""
    for key, value in values.items():
        if is_reserved_key(key):
            continue
        yield key, value


def named_value(entry: Mapping[str, Any]) -> tuple[str, Any]:
    """Pick the single named value out of a one-key mapping
    
    Example:
        >>> named_value({"firstName": "TEXT NOT NULL"})
        ('firstName', 'TEXT NOT NULL')
    """
    for key, value in column_items(entry):
        if callable(value):
            continue
        return key, value
    raise ValueError(f"Expected a mapping with one named value, got: {entry!r}")
