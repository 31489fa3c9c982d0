"""Fluent SQL statement builder and condition compiler"""

from sqlitelib.sql.builder import SQL, build_condition
from sqlitelib.sql.conditions import compile_condition, parse_condition
from sqlitelib.sql.ddl import IndexDefinition, TableDefinition
from sqlitelib.sql.render import format_literal, render
from sqlitelib.sql.types import UNSET

__all__ = [
    "SQL",
    "build_condition",
    "compile_condition",
    "parse_condition",
    "IndexDefinition",
    "TableDefinition",
    "format_literal",
    "render",
    "UNSET",
]
