"""Connection module exports."""

from .connection import SQLiteConnector, dict_factory, MEMORY

__all__ = [
    "SQLiteConnector",
    "dict_factory",
    "MEMORY",
]
