"""
sqlitelib - SQLite utilities with a fluent SQL builder

Code is organized in layers
- sql/ builds SQL text and parameters, independent of any connection
- config/ and connection/ as the interface to sqlite3
- primitives/ wraps these in low-level functions
- Database is the higher-level convenience wrapper
"""

# Layer 0: Statement builder
from sqlitelib.sql import SQL, UNSET, IndexDefinition, TableDefinition, build_condition

# Layer 1: Core connectivity
from sqlitelib.config import load_profile, list_profiles, DatabaseProfile
from sqlitelib.connection import SQLiteConnector
from sqlitelib.context import SQLiteContext

# Layer 2: Primitives
from sqlitelib.primitives import (
    QueryResult,
    RunResult,
    Statement,
    execute_sql,
    execute_block,
    fetch_one,
    fetch_all,
    fetch_df,
    Executor,
)

# Layer 3: Database
from sqlitelib.database import Database

__version__ = "0.1.0"
__all__ = [
    # Layer 0: Statement builder
    "SQL",
    "UNSET",
    "IndexDefinition",
    "TableDefinition",
    "build_condition",
    # Layer 1: Configuration & Connection
    "load_profile", 
    "list_profiles",
    "DatabaseProfile",
    "SQLiteConnector",
    "SQLiteContext",
    # Layer 2: Execution
    "QueryResult",
    "RunResult",
    "Statement",
    "execute_sql",
    "execute_block",
    "fetch_one",
    "fetch_all",
    "fetch_df",
    "Executor",
    # Layer 3: Database
    "Database",
]
