"""Table and index definitions that render to CREATE/DROP statements

Names are interpolated as quoted identifiers, never bound as parameters,
so they must come from trusted code rather than user input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Union

from sqlitelib.utils.identifiers import column_items, named_value, quote_identifier

ColumnEntry = Union[str, Mapping[str, str]]


def _option(options: Mapping[str, Any], *names: str, default: Any = None) -> Any:
    """First option present under any of the given spellings"""
    for name in names:
        if name in options:
            return options[name]
    return default


def _column_pairs(columns: Union[Mapping[str, str], Sequence[ColumnEntry]]) -> list[tuple[str, str]]:
    """Normalize column declarations to an ordered list of (name, clause)"""
    if isinstance(columns, Mapping):
        return list(column_items(columns))
    return [named_value(entry) for entry in columns]


@dataclass
class IndexDefinition:
    """A CREATE INDEX statement

    Columns are plain names (ascending) or one-key mappings of name to
    "ASC" or "DESC". When index_name is omitted it is synthesized from the
    table name and the column names in declaration order.
    """
    table_name: Optional[str]
    columns: Sequence[ColumnEntry]
    unique: bool = False
    index_name: Optional[str] = None

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> IndexDefinition:
        """Build from an options mapping using tableName or table_name style keys"""
        return cls(
            table_name=_option(options, "table_name", "tableName"),
            columns=_option(options, "columns", default=[]),
            unique=bool(_option(options, "unique", default=False)),
            index_name=_option(options, "index_name", "indexName"),
        )

    def column_specs(self) -> list[tuple[str, str]]:
        """Ordered (column, direction) pairs"""
        specs = []
        for entry in self.columns:
            if isinstance(entry, str):
                specs.append((entry, "ASC"))
            else:
                specs.append(named_value(entry))
        return specs

    @property
    def name(self) -> str:
        """Explicit index name or one synthesized from table and columns"""
        if self.index_name:
            return self.index_name
        column_names = [column for column, _ in self.column_specs()]
        return "_".join([str(self.table_name), *column_names])

    def to_sql(self) -> str:
        """Render the CREATE INDEX statement"""
        if not self.table_name:
            raise ValueError("Index definition requires a table name")

        column_defs = ", ".join(
            f"{quote_identifier(column)} {direction}"
            for column, direction in self.column_specs()
        )
        unique = "UNIQUE " if self.unique else ""
        return (
            f"CREATE {unique}INDEX {quote_identifier(self.name)} "
            f"ON {quote_identifier(self.table_name)} ( {column_defs} )"
        )


@dataclass
class TableDefinition:
    """A CREATE TABLE statement plus the indices created alongside it"""
    table_name: str
    columns: Union[Mapping[str, str], Sequence[Mapping[str, str]]]
    temp: bool = False
    indices: list[IndexDefinition] = field(default_factory=list)

    @classmethod
    def from_dict(cls, options: Mapping[str, Any]) -> TableDefinition:
        """Build from an options mapping

        Accepts tableName/table_name and the historical 'indicies' spelling
        alongside 'indices'.
        """
        indices = [
            index if isinstance(index, IndexDefinition) else IndexDefinition.from_dict(index)
            for index in _option(options, "indices", "indicies", default=None) or []
        ]
        return cls(
            table_name=_option(options, "table_name", "tableName"),
            columns=_option(options, "columns", default=[]),
            temp=bool(_option(options, "temp", default=False)),
            indices=indices,
        )

    def to_sql(self) -> str:
        """Render the CREATE TABLE statement"""
        if not self.table_name:
            raise ValueError("Table definition requires a table name")

        column_defs = ", ".join(
            f"{quote_identifier(name)} {clause}" for name, clause in _column_pairs(self.columns)
        )
        temp = "TEMP " if self.temp else ""
        return f"CREATE {temp}TABLE {quote_identifier(self.table_name)} ( {column_defs} )"

    def index_definitions(self) -> list[IndexDefinition]:
        """Indices with their table name defaulted to this table"""
        resolved = []
        for index in self.indices:
            if index.table_name:
                resolved.append(index)
            else:
                resolved.append(
                    IndexDefinition(
                        table_name=self.table_name,
                        columns=index.columns,
                        unique=index.unique,
                        index_name=index.index_name,
                    )
                )
        return resolved


def drop_table_sql(name: str) -> str:
    return f"DROP TABLE {quote_identifier(name)}"
