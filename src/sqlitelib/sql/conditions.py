"""Compile condition mappings into parameterized SQL

A condition mapping names columns and describes what each column must
satisfy. Plain values compare for equality, None checks for NULL, and a
nested mapping with operator keys selects a comparison:

    >>> text, params = compile_condition({"age": {"$gte": 18}, "name": "Joe"})
    >>> text
    '(`age` >= ? AND `name` = ?)'
    >>> params
    [18, 'Joe']

Compilation happens in two steps. parse_condition() turns the mapping into
a list of Expression objects using the ordered OPERATOR_RULES table, and
compile_expression() renders each expression to text and parameters.
The first rule whose key is present in a value mapping wins; a mapping
that matches no rule is bound as a plain value for equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional, Sequence, Union

from sqlitelib.sql.types import UNSET, normalize_params
from sqlitelib.utils.identifiers import column_items, quote_identifier

if TYPE_CHECKING:
    from sqlitelib.sql.builder import SQL


@dataclass(frozen=True)
class Comparison:
    """Binary comparison of a column against one bound value"""
    column: str
    operator: str
    value: Any


@dataclass(frozen=True)
class IsNull:
    """NULL check, IS NOT NULL when negated"""
    column: str
    negated: bool = False


@dataclass(frozen=True)
class InValues:
    """Membership in a literal list of bound values"""
    column: str
    values: tuple[Any, ...]
    negated: bool = False


@dataclass(frozen=True)
class InQuery:
    """Membership in the rows of a sub-select"""
    column: str
    query: "SQL"
    negated: bool = False


@dataclass(frozen=True)
class AnyOf:
    children: tuple["Expression", ...]


@dataclass(frozen=True)
class AllOf:
    children: tuple["Expression", ...]


@dataclass(frozen=True)
class Not:
    child: "Expression"


@dataclass(frozen=True)
class RawText:
    """SQL text passed through verbatim with its own parameters"""
    text: str
    params: tuple[Any, ...] = ()


Expression = Union[Comparison, IsNull, InValues, InQuery, AnyOf, AllOf, Not, RawText]


def _is_builder(value: Any) -> bool:
    from sqlitelib.sql.builder import SQL
    return isinstance(value, SQL)


def _comparison(operator: str) -> Callable[[str, Any], Optional[Expression]]:
    def rule(column: str, operand: Any) -> Optional[Expression]:
        return Comparison(column, operator, operand)
    return rule


def _null_check(negated: bool) -> Callable[[str, Any], Optional[Expression]]:
    def rule(column: str, operand: Any) -> Optional[Expression]:
        # Only a literal None selects the null check
        if operand is None:
            return IsNull(column, negated=negated)
        return None
    return rule


def _membership(negated: bool) -> Callable[[str, Any], Optional[Expression]]:
    def rule(column: str, operand: Any) -> Optional[Expression]:
        if _is_builder(operand):
            return InQuery(column, operand, negated=negated)
        return InValues(column, tuple(operand), negated=negated)
    return rule


def _group(kind: type) -> Callable[[str, Any], Optional[Expression]]:
    def rule(column: str, operand: Any) -> Optional[Expression]:
        return kind(tuple(parse_value(column, sub) for sub in operand))
    return rule


def _negation(column: str, operand: Any) -> Optional[Expression]:
    if isinstance(operand, Mapping) and "$is" in operand and operand["$is"] is None:
        return IsNull(column, negated=True)
    return Not(parse_value(column, operand))


# Checked in order, first present key wins
OPERATOR_RULES: Sequence[tuple[str, Callable[[str, Any], Optional[Expression]]]] = (
    ("$ne", _comparison("<>")),
    ("$lt", _comparison("<")),
    ("$gt", _comparison(">")),
    ("$lte", _comparison("<=")),
    ("$gte", _comparison(">=")),
    ("$le", _comparison("<=")),
    ("$ge", _comparison(">=")),
    ("$eq", _comparison("=")),
    ("$like", _comparison("LIKE")),
    ("$glob", _comparison("GLOB")),
    ("$is", _null_check(negated=False)),
    ("$isnot", _null_check(negated=True)),
    ("$in", _membership(negated=False)),
    ("$nin", _membership(negated=True)),
    ("$or", _group(AnyOf)),
    ("$and", _group(AllOf)),
    ("$not", _negation),
)


def parse_value(column: str, value: Any) -> Expression:
    """Parse the value given for one column into an Expression"""
    if value is None:
        return IsNull(column)

    if isinstance(value, Mapping):
        for key, rule in OPERATOR_RULES:
            operand = value.get(key, UNSET)
            if operand is UNSET:
                continue
            expression = rule(column, operand)
            if expression is not None:
                return expression

    # Anything unrecognized binds as-is
    return Comparison(column, "=", value)


def parse_condition(condition: Mapping[str, Any]) -> list[Expression]:
    """Parse every column entry of a condition mapping"""
    return [
        parse_value(column, value)
        for column, value in column_items(condition)
        if value is not UNSET
    ]


def compile_expression(expression: Expression) -> tuple[str, list[Any]]:
    """Render an Expression to SQL text and its parameters"""
    if isinstance(expression, Comparison):
        column = quote_identifier(expression.column)
        return f"{column} {expression.operator} ?", [expression.value]

    if isinstance(expression, IsNull):
        column = quote_identifier(expression.column)
        return f"{column} IS {'NOT NULL' if expression.negated else 'NULL'}", []

    if isinstance(expression, InValues):
        column = quote_identifier(expression.column)
        keyword = "NOT IN" if expression.negated else "IN"
        placeholders = ", ".join("?" for _ in expression.values)
        return f"{column} {keyword} ({placeholders})", list(expression.values)

    if isinstance(expression, InQuery):
        column = quote_identifier(expression.column)
        keyword = "NOT IN" if expression.negated else "IN"
        return f"{column} {keyword} ({expression.query.text})", list(expression.query.params)

    if isinstance(expression, (AnyOf, AllOf)):
        if not expression.children:
            return ("FALSE" if isinstance(expression, AnyOf) else "TRUE"), []
        joiner = " OR " if isinstance(expression, AnyOf) else " AND "
        text, params = _compile_all(expression.children, joiner)
        return f"({text})", params

    if isinstance(expression, Not):
        text, params = compile_expression(expression.child)
        return f"NOT ({text})", params

    if isinstance(expression, RawText):
        return expression.text, list(expression.params)

    raise TypeError(f"Unknown condition expression: {expression!r}")


def _compile_all(expressions: Sequence[Expression], joiner: str) -> tuple[str, list[Any]]:
    texts: list[str] = []
    params: list[Any] = []
    for expression in expressions:
        text, expression_params = compile_expression(expression)
        texts.append(text)
        params.extend(expression_params)
    return joiner.join(texts), params


def compile_condition(condition: Mapping[str, Any]) -> tuple[str, list[Any]]:
    """Compile a condition mapping, AND-ing its columns together

    A mapping with no column entries compiles to TRUE so that filters
    built up conditionally never need a special case for "no filter".
    """
    expressions = parse_condition(condition)
    if not expressions:
        return "TRUE", []
    text, params = _compile_all(expressions, " AND ")
    return f"({text})", params


def raw_text(text: str, *params: Any) -> RawText:
    """Wrap SQL text and its parameters as a RawText expression"""
    return RawText(text, tuple(normalize_params(params)))
