"""SQL execution primitives.

Plain functions for executing SQL statements and fetching results.
These are thin wrappers around sqlite3 cursor operations that accept
either SQL text with positional parameters or an SQL builder.
"""

from typing import Any, Union, Optional
import pandas as pd

from sqlitelib.context import SQLiteContext
from sqlitelib.primitives.result import QueryResult
from sqlitelib.sql import SQL
from sqlitelib.sql.types import normalize_params


SQLInput = Union[str, SQL]


def statement_parts(sql: SQLInput, params: tuple[Any, ...] = ()) -> tuple[str, list[Any]]:
    """Split a statement into its text and parameter list"""
    if isinstance(sql, SQL):
        return sql.text, list(sql.params)
    return sql, normalize_params(params)


class Executor:
    """Execute SQL statements against a context"""
    
    def __init__(self, context: Union[str, SQLiteContext], **overrides: Any):
        """Initialize with a profile name or SQLiteContext instance"""
        if isinstance(context, str):
            self.context = SQLiteContext(profile=context, **overrides)
        else:
            self.context = context

    def run(self, sql: SQLInput, *params: Any) -> QueryResult:
        """Execute one statement and return a QueryResult"""
        text, bindings = statement_parts(sql, params)
        cursor = self.context.connection.execute(text, bindings)
        return QueryResult(_cursor=cursor, _sql=text)

    def run_block(self, script: str) -> QueryResult:
        """Execute a script of semicolon-separated statements"""
        cursor = self.context.connection.executescript(script)
        return QueryResult(_cursor=cursor, _sql=script)


def execute_sql(
    sql: SQLInput,
    context: Union[str, SQLiteContext],
    *params: Any,
    **overrides: Any
) -> QueryResult:
    """Execute SQL statement and return result with metadata.
    
    Use for: DDL (CREATE/DROP/ALTER), DML (INSERT/UPDATE/DELETE)
    
    Args:
        sql: SQL text or SQL builder
        context: SQLiteContext object or profile name
        *params: Positional parameters when sql is text
        **overrides: Runtime overrides for the profile (only used if context is a string)
        
    Returns:
        QueryResult object with access to rowcount, lastrowid and metadata
        
    Example:
        >>> result = execute_sql("DELETE FROM jobs WHERE done = ?", ctx, 1)
        >>> print(f"Deleted {result.rowcount} rows")
        
        >>> execute_sql(SQL.insert("jobs").values({"name": "nightly"}), ctx).lastrowid
        7
        
    Raises:
        sqlite3.Error: Any SQLite error
    """
    return Executor(context, **overrides).run(sql, *params)


def fetch_one(
    sql: SQLInput,
    context: Union[str, SQLiteContext],
    *params: Any,
    **overrides: Any
) -> Optional[Any]:
    """Execute query and return the first row, or None if no results"""
    return Executor(context, **overrides).run(sql, *params).fetch_one()


def fetch_all(
    sql: SQLInput,
    context: Union[str, SQLiteContext],
    *params: Any,
    **overrides: Any
) -> list[Any]:
    """Execute query and return all rows.
    
    Warning:
        Loads all results into memory. Use QueryResult.fetch_batches() for large result sets.
    """
    return Executor(context, **overrides).run(sql, *params).fetch_all()


def fetch_df(
    sql: SQLInput,
    context: Union[str, SQLiteContext],
    *params: Any,
    lowercase_columns: bool = False,
    **overrides: Any
) -> pd.DataFrame:
    """Execute query and return pandas DataFrame.
    
    Example:
        >>> df = fetch_df(SQL.select().from_("sales").where({"region": "EU"}), ctx)
        >>> print(df.shape)
        (1500, 8)
    """
    result = Executor(context, **overrides).run(sql, *params)
    return result.to_df(lowercase_columns=lowercase_columns)


def execute_block(
    sql: str,
    context: Union[str, SQLiteContext],
    **overrides: Any
) -> QueryResult:
    """Execute a block of SQL statements.
    
    Uses executescript(), which commits any pending transaction first and
    takes no parameters. Useful for running schema scripts.
    
    Example:
        >>> execute_block('''
        ... CREATE TABLE temp_data (id INT);
        ... INSERT INTO temp_data VALUES (1), (2), (3);
        ... ''', context=ctx)
    """
    return Executor(context, **overrides).run_block(sql)
