"""A fluent builder for SQL text and its bound parameters"""

import functools
import logging
import types
from typing import Any, Callable, Mapping, Optional, Union

from sqlitelib.sql.conditions import compile_condition, compile_expression, raw_text
from sqlitelib.sql.ddl import IndexDefinition, TableDefinition, drop_table_sql
from sqlitelib.sql.render import render
from sqlitelib.sql.types import UNSET, is_skipped_value, normalize_params
from sqlitelib.utils.identifiers import column_items, quote_identifier

logger = logging.getLogger(__name__)


class statement_method:
    """Method that, when called on the class, starts a new builder

    SQL.select("a") is shorthand for SQL().select("a").
    """

    def __init__(self, func: Callable[..., "SQL"]):
        self.func = func
        functools.update_wrapper(self, func)  # type: ignore[arg-type]

    def __get__(self, instance: Optional["SQL"], owner: type) -> Callable[..., "SQL"]:
        if instance is not None:
            return types.MethodType(self.func, instance)

        # A new builder per call, so SQL.select can be stored and reused
        @functools.wraps(self.func)
        def start(*args: Any, **kwargs: Any) -> "SQL":
            return self.func(owner(), *args, **kwargs)
        return start


def _value_kind(value: Any) -> Optional[str]:
    """Classify scalars for unchanged-value comparison, None for anything else"""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "text"
    if isinstance(value, bytes):
        return "blob"
    return None


def _is_unchanged(original: Mapping[str, Any], key: str, value: Any) -> bool:
    """True when original holds the same scalar value for key

    Containers and other objects never count as unchanged.
    """
    if key not in original:
        return False
    previous = original[key]
    kind = _value_kind(value)
    return kind is not None and kind == _value_kind(previous) and previous == value


class SQL:
    """A fluent builder that accumulates SQL text and its parameters

    Every method appends to the statement and returns the builder, so calls
    chain. Parameters are positional and line up with the '?' placeholders
    in the text from left to right.

    Example:
        >>> sql = SQL.select().from_("Users").where({"age": {"$gte": 21}})
        >>> sql.text
        'SELECT * FROM Users WHERE (`age` >= ?)'
        >>> sql.params
        [21]

        >>> SQL("SELECT * FROM Users").append("WHERE balance > ?", 1000).to_string()
        'SELECT * FROM Users WHERE balance > 1000'
    """

    def __init__(self, text: Union[str, "SQL", None] = None, *params: Any):
        self.text: str = ""
        self.params: list[Any] = []
        self.fndata_values: list[Any] = []
        self.has_where: bool = False
        self.last_values: dict[str, Any] = {}
        self.append(text, *params)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"SQL({self.text!r}, params={self.params!r})"

    def to_string(self) -> str:
        """Render the statement with parameters substituted as literals

        For logging and debugging only, never execute the result.

        Raises:
            TypeError: If a parameter is not None, int, float, str or bytes
        """
        return render(self.text, self.params)

    def log(self, sink: Optional[Callable[[str], Any]] = None) -> "SQL":
        """Send the rendered statement to sink (default: this module's logger)"""
        (sink or logger.info)(self.to_string())
        return self

    # Core

    def append(self, fragment: Union[str, "SQL", None] = None, *params: Any) -> "SQL":
        """Append text and parameters to this statement

        Example:
            >>> sql = SQL("SELECT * FROM Users")
            >>> sql.append("WHERE x=? AND y=?", 10, 20)     # positional
            >>> sql.append("AND z IN (?, ?)", [30, 40])     # as a list
            >>> sql.append(SQL("ORDER BY ?", "x"))          # another builder

        Appending another builder copies its text and parameters.
        """
        self.has_where = False

        if fragment is None:
            return self

        if isinstance(fragment, SQL):
            self._merge_fndata(fragment)
            self._append_text(fragment.text)
            self.params.extend(fragment.params)
            return self

        self._append_text(str(fragment))
        self.params.extend(normalize_params(params))
        return self

    def _append_text(self, text: str) -> None:
        if not text:
            return
        self.text = f"{self.text} {text}" if self.text else text

    def _merge_fndata(self, other: "SQL") -> None:
        if not other.fndata_values:
            return
        if self.fndata_values:
            raise ValueError(
                "Cannot append a statement carrying function data to one that "
                "already carries function data"
            )
        self.fndata_values = list(other.fndata_values)

    def param(self, value: Any) -> "SQL":
        """Add a parameter without adding any text"""
        self.params.append(value)
        return self

    def fndata(self, data: Any) -> "SQL":
        """Pass data to a custom function without binding it through SQLite

        The data is kept on the side and its index is added as a parameter;
        the registered function resolves the index back to the data with
        Database.fndata().
        """
        self.params.append(len(self.fndata_values))
        self.fndata_values.append(data)
        return self

    def parens(self, fragment: Union[str, "SQL", None] = None, *params: Any) -> "SQL":
        """Append a fragment surrounded by '(' and ')'"""
        self.append("(")
        self.append(fragment, *params)
        self.append(")")
        return self

    # Statement kinds

    @statement_method
    def select(self, columns: Any = None, *params: Any) -> "SQL":
        """Append a SELECT clause

        Example:
            >>> SQL.select().text
            'SELECT *'
            >>> SQL.select(["firstName", "lastName"]).text
            'SELECT firstName, lastName'
            >>> SQL.select({"total": "COUNT(*)"}).text
            'SELECT COUNT(*) AS `total`'
        """
        self.append("SELECT")
        if columns is None:
            return self.append("*")

        if isinstance(columns, Mapping):
            columns = [f"{expression} AS {quote_identifier(alias)}" for alias, expression in columns.items()]

        if isinstance(columns, (list, tuple)):
            columns = ", ".join(str(column) for column in columns)

        return self.append(columns, *params)

    @statement_method
    def insert(self, *args: Any) -> "SQL":
        return self.append("INSERT INTO").append(*args)

    @statement_method
    def insert_or_replace(self, *args: Any) -> "SQL":
        return self.append("INSERT OR REPLACE INTO").append(*args)

    @statement_method
    def insert_or_ignore(self, *args: Any) -> "SQL":
        return self.append("INSERT OR IGNORE INTO").append(*args)

    @statement_method
    def update(self, *args: Any) -> "SQL":
        return self.append("UPDATE").append(*args)

    @statement_method
    def delete(self, *args: Any) -> "SQL":
        """Append DELETE FROM, optionally followed by a table name"""
        return self.append("DELETE FROM").append(*args)

    def values(self, values: Any) -> "SQL":
        """Append the column list and VALUES of an INSERT

        Given a mapping, each column gets a placeholder and its value becomes
        a parameter. Keys starting with '$' or '.' and values that are
        callable or UNSET are left out. Given a sequence of column names,
        only the placeholders are emitted and the caller supplies values.
        """
        params: list[Any] = []
        if isinstance(values, Mapping):
            columns = []
            self.last_values = {}
            for key, value in column_items(values):
                if is_skipped_value(value):
                    continue
                self.last_values[key] = value
                columns.append(quote_identifier(key))
                params.append(value)
        else:
            columns = [str(column) for column in values]

        placeholders = ", ".join("?" for _ in columns)
        return self.append(f"({', '.join(columns)}) VALUES ({placeholders})", params)

    def set(self, values: Any, *params: Any, original: Optional[Mapping[str, Any]] = None) -> "SQL":
        """Append the SET clause of an UPDATE

        Given text, it is appended verbatim with params. Given a mapping,
        each column becomes 'col = ?'. When original values are supplied,
        either positionally or as original=, columns whose scalar value is
        unchanged are left out.

        Example:
            >>> SQL.update("Users").set({"a": 1, "b": 2}, {"a": 1, "b": 3}).text
            'UPDATE Users SET `b` = ?'
        """
        self.append("SET")

        if not isinstance(values, Mapping):
            return self.append(values, *params)

        if original is None and params:
            original = params[0]

        expressions = []
        set_params: list[Any] = []
        self.last_values = {}
        for key, value in column_items(values):
            if is_skipped_value(value):
                continue
            self.last_values[key] = value

            if original is not None and _is_unchanged(original, key, value):
                continue

            expressions.append(f"{quote_identifier(key)} = ?")
            set_params.append(value)

        return self.append(", ".join(expressions), set_params)

    # Clauses

    def from_(self, *args: Any) -> "SQL":
        return self.append("FROM").append(*args)

    def order_by(self, *args: Any) -> "SQL":
        return self.append("ORDER BY").append(*args)

    def group_by(self, *args: Any) -> "SQL":
        return self.append("GROUP BY").append(*args)

    def left_join(self, *args: Any) -> "SQL":
        """Append LEFT JOIN, usually followed by on()"""
        return self.append("LEFT JOIN").append(*args)

    def on(self, condition: Any, *params: Any) -> "SQL":
        """Append an ON clause for the preceding join"""
        self.append("ON")
        return self.append(build_condition(condition, *params))

    def where(self, condition: Any = None, *params: Any) -> "SQL":
        """Append a WHERE clause

        The condition is text with params, another builder, or a mapping of
        column conditions (see sqlitelib.sql.conditions). Without a
        condition nothing is appended.

        Example:
            >>> SQL().where({"x": 10, "y": 20}).text
            'WHERE (`x` = ? AND `y` = ?)'
        """
        if condition is None or condition is UNSET:
            return self

        self.append("WHERE")
        self.append(build_condition(condition, *params))
        self.has_where = True
        return self

    def and_where(self, condition: Any = None, *params: Any) -> "SQL":
        """Append WHERE for the first condition and AND for the following ones"""
        if condition is None or condition is UNSET:
            return self

        if self.has_where:
            self.and_(condition, *params)
        else:
            self.where(condition, *params)
        self.has_where = True
        return self

    def or_where(self, condition: Any = None, *params: Any) -> "SQL":
        """Append WHERE for the first condition and OR for the following ones"""
        if condition is None or condition is UNSET:
            return self

        if self.has_where:
            self.or_(condition, *params)
        else:
            self.where(condition, *params)
        self.has_where = True
        return self

    def and_(self, condition: Any, *params: Any) -> "SQL":
        self.append("AND")
        return self.append(build_condition(condition, *params))

    def or_(self, condition: Any, *params: Any) -> "SQL":
        self.append("OR")
        return self.append(build_condition(condition, *params))

    def in_(self, values: Any = None, *params: Any) -> "SQL":
        """Append an IN clause

        Example:
            >>> SQL("WHERE id").in_([10, 20, 30]).text
            'WHERE id IN (?, ?, ?)'
            >>> SQL("WHERE id").in_(SQL.select("id").from_("Admins")).text
            'WHERE id IN (SELECT id FROM Admins)'
        """
        self.append("IN")
        if isinstance(values, SQL):
            self._merge_fndata(values)
            return self.append(f"({values.text})", values.params)
        if isinstance(values, (list, tuple)):
            placeholders = ", ".join("?" for _ in values)
            return self.append(f"({placeholders})", list(values))
        return self.append(values, *params)

    # Paging

    def limit(self, rows: int) -> "SQL":
        return self.append("LIMIT ?", rows)

    def skip_take(self, skip: int, take: int) -> "SQL":
        """Append LIMIT skipping the first skip rows and taking take rows"""
        return self.append("LIMIT ?, ?", [skip, take])

    def take_page(self, page: int, rows_per_page: int) -> "SQL":
        """Append LIMIT selecting one page of rows, page numbers start at 1"""
        return self.skip_take((page - 1) * rows_per_page, rows_per_page)

    # Conditions and schema

    @staticmethod
    def build_condition(condition: Any, *params: Any) -> "SQL":
        return build_condition(condition, *params)

    @staticmethod
    def create_table(options: Union[TableDefinition, Mapping[str, Any]]) -> "SQL":
        """Build a CREATE TABLE statement

        Example:
            >>> SQL.create_table({
            ...     "tableName": "Users",
            ...     "columns": [
            ...         {"id": "INTEGER PRIMARY KEY AUTOINCREMENT"},
            ...         {"name": "TEXT NOT NULL"},
            ...     ],
            ... }).text
            'CREATE TABLE `Users` ( `id` INTEGER PRIMARY KEY AUTOINCREMENT, `name` TEXT NOT NULL )'
        """
        if not isinstance(options, TableDefinition):
            options = TableDefinition.from_dict(options)
        return SQL(options.to_sql())

    @staticmethod
    def drop_table(name: str) -> "SQL":
        return SQL(drop_table_sql(name))

    @staticmethod
    def create_index(options: Union[IndexDefinition, Mapping[str, Any]]) -> "SQL":
        """Build a CREATE INDEX statement, see IndexDefinition"""
        if not isinstance(options, IndexDefinition):
            options = IndexDefinition.from_dict(options)
        return SQL(options.to_sql())


def build_condition(condition: Any, *params: Any) -> SQL:
    """Turn a condition into a builder

    Builders pass through unchanged, text is taken verbatim with params and
    mappings are compiled; an empty mapping gives TRUE.

    Raises:
        TypeError: For any other kind of condition
    """
    if isinstance(condition, SQL):
        return condition

    if isinstance(condition, str):
        text, condition_params = compile_expression(raw_text(condition, *params))
        return SQL(text, condition_params)

    if isinstance(condition, Mapping):
        text, condition_params = compile_condition(condition)
        return SQL(text, condition_params)

    raise TypeError(
        f"Invalid condition type: '{type(condition).__name__}' must be "
        "str, mapping, or SQL"
    )
