"""Primitive operations wrapping direct sqlite3 calls"""

from sqlitelib.primitives.result import QueryResult
from sqlitelib.primitives.statement import RunResult, Statement, StatementCache

from sqlitelib.primitives.execution import (
    Executor,
    execute_sql,
    fetch_one,
    fetch_all,
    fetch_df,
    execute_block,
    statement_parts,
)

__all__ = [
    "QueryResult",
    "RunResult",
    "Statement",
    "StatementCache",
    # Execution
    "Executor",
    "execute_sql",
    "fetch_one",
    "fetch_all",
    "fetch_df",
    "execute_block",
    "statement_parts",
]
