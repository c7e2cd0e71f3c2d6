"""Filter and search compilation.

A descriptor's filters and search compile into two equivalent forms: a small
backend-agnostic predicate tree (:class:`PredicateGroup` of
:class:`PredicateTerm`) and a sqlglot condition using anonymous ``?``
placeholders. Both come with the bind values in placeholder order. Values are
never rendered into statement text.
"""

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Optional, Union

from sqlglot import exp

from pagespec.core.cursor import resolve_cursor_operator
from pagespec.core.params import FilterCondition, PaginationDescriptor, SearchSpec
from pagespec.core.values import FilterOperator, FilterValue, ValueKind
from pagespec.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

__all__ = (
    "CompiledPredicate",
    "Connector",
    "PredicateGroup",
    "PredicateTerm",
    "bind_count",
    "compile_condition",
    "compile_cursor_predicate",
    "compile_predicate",
    "compile_search",
)

logger = get_logger("core.compiler")

COMPILE_CACHE_SIZE = 256


class Connector(str, Enum):
    AND = "AND"
    OR = "OR"


@dataclass(frozen=True)
class PredicateTerm:
    """One ``field <operator> placeholder(s)`` triple."""

    field: str
    operator: FilterOperator
    placeholders: int


@dataclass(frozen=True)
class PredicateGroup:
    connector: Connector
    children: tuple[Union[PredicateTerm, "PredicateGroup"], ...]

    def terms(self) -> tuple[PredicateTerm, ...]:
        """All terms of the tree, depth first, in placeholder order."""
        found: list[PredicateTerm] = []
        for child in self.children:
            if isinstance(child, PredicateGroup):
                found.extend(child.terms())
            else:
                found.append(child)
        return tuple(found)


class CompiledPredicate:
    """Result of :func:`compile_predicate`.

    ``parameters[i]`` binds the i-th ``?`` of :meth:`sql`. ``expression`` returns
    a fresh copy on every access, so callers may attach it to their own trees.
    """

    __slots__ = ("_expression", "parameters", "predicate")

    def __init__(
        self,
        predicate: Optional[PredicateGroup],
        parameters: tuple[Any, ...],
        expression: Optional[exp.Expression],
    ) -> None:
        self.predicate = predicate
        self.parameters = parameters
        self._expression = expression

    @property
    def expression(self) -> Optional[exp.Expression]:
        return None if self._expression is None else self._expression.copy()

    @property
    def is_empty(self) -> bool:
        return self._expression is None

    def sql(self, dialect: "Optional[DialectType]" = None) -> str:
        """Render the condition, ``""`` when there is nothing to filter on."""
        if self._expression is None:
            return ""
        return self._expression.sql(dialect=dialect)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CompiledPredicate):
            return NotImplemented
        return self.predicate == other.predicate and self.parameters == other.parameters and self.sql() == other.sql()

    def __hash__(self) -> int:
        return hash((self.predicate, self.parameters))

    def __repr__(self) -> str:
        return f"CompiledPredicate(sql={self.sql()!r}, parameters={self.parameters!r})"


def _column(field: str) -> exp.Column:
    return exp.column(*reversed(field.split(".")))


def bind_count(condition: FilterCondition) -> int:
    """Number of values ``condition`` binds: 0, 1, the list length, or 2."""
    if condition.operator.takes_list:
        return len(condition.values[0].value)
    return len(condition.values)


def _bound(value: FilterValue) -> Any:
    if value.kind is ValueKind.LIST:
        return tuple(item.value for item in value.value)
    return value.value


def compile_condition(condition: FilterCondition) -> tuple[exp.Expression, tuple[Any, ...]]:
    """Compile one filter into a sqlglot condition and its bind values."""
    column = _column(condition.field)
    operator = condition.operator
    params = tuple(_bound(value) for value in condition.values)

    if operator is FilterOperator.IS_NULL:
        return exp.Is(this=column, expression=exp.Null()), ()
    if operator is FilterOperator.IS_NOT_NULL:
        return exp.Not(this=exp.Is(this=column, expression=exp.Null())), ()
    if operator is FilterOperator.BETWEEN:
        return exp.Between(this=column, low=exp.Placeholder(), high=exp.Placeholder()), params
    if operator.takes_list:
        items = params[0]
        membership = exp.In(this=column, expressions=[exp.Placeholder() for _ in items])
        return (membership if operator is FilterOperator.IN else exp.Not(this=membership)), items

    (value,) = params
    placeholder = exp.Placeholder()
    if operator is FilterOperator.CONTAINS:
        return exp.Like(this=column, expression=placeholder), (f"%{value}%",)
    node_type = {
        FilterOperator.EQ: exp.EQ,
        FilterOperator.NE: exp.NEQ,
        FilterOperator.GT: exp.GT,
        FilterOperator.LT: exp.LT,
        FilterOperator.GTE: exp.GTE,
        FilterOperator.LTE: exp.LTE,
        FilterOperator.LIKE: exp.Like,
        FilterOperator.ILIKE: exp.ILike,
    }[operator]
    return node_type(this=column, expression=placeholder), params


def _search_operator(search: SearchSpec) -> FilterOperator:
    if search.exact:
        return FilterOperator.EQ
    return FilterOperator.LIKE if search.case_sensitive else FilterOperator.ILIKE


def compile_search(search: SearchSpec) -> tuple[PredicateGroup, exp.Expression, tuple[Any, ...]]:
    """Compile a search into ``(f1 OP ?) OR ... OR (fn OP ?)``."""
    operator = _search_operator(search)
    node_type = {FilterOperator.EQ: exp.EQ, FilterOperator.LIKE: exp.Like, FilterOperator.ILIKE: exp.ILike}[operator]
    terms = tuple(PredicateTerm(field, operator, 1) for field in search.fields)

    nodes = [exp.Paren(this=node_type(this=_column(field), expression=exp.Placeholder())) for field in search.fields]
    condition: exp.Expression = nodes[0]
    for node in nodes[1:]:
        condition = exp.Or(this=condition, expression=node)
    return PredicateGroup(Connector.OR, terms), condition, (search.pattern,) * len(search.fields)


def _and(left: Optional[exp.Expression], right: exp.Expression) -> exp.Expression:
    return right if left is None else exp.And(this=left, expression=right)


@lru_cache(maxsize=COMPILE_CACHE_SIZE)
def _compile(filters: tuple[FilterCondition, ...], search: Optional[SearchSpec]) -> CompiledPredicate:
    children: list[Union[PredicateTerm, PredicateGroup]] = []
    parameters: list[Any] = []
    condition: Optional[exp.Expression] = None

    for item in filters:
        node, params = compile_condition(item)
        children.append(PredicateTerm(item.field, item.operator, bind_count(item)))
        parameters.extend(params)
        condition = _and(condition, node)

    if search is not None:
        group, node, params = compile_search(search)
        children.append(group)
        parameters.extend(params)
        condition = node if condition is None else exp.And(this=condition, expression=exp.Paren(this=node))

    predicate = PredicateGroup(Connector.AND, tuple(children)) if children else None
    compiled = CompiledPredicate(predicate, tuple(parameters), condition)
    logger.debug("Compiled predicate: %s (%d bind values)", compiled.sql() or "<empty>", len(parameters))
    return compiled


def compile_predicate(descriptor: PaginationDescriptor) -> CompiledPredicate:
    """Compile the filters and search of ``descriptor``.

    Filters are AND-combined in encounter order; a search becomes one OR group
    appended after them. Results are memoised by value.

    Example:
        >>> descriptor = PaginatorBuilder().filter_eq("status", "active").filter_gt("age", 18).build()
        >>> compiled = compile_predicate(descriptor)
        >>> compiled.sql(), compiled.parameters
        ('status = ? AND age > ?', ('active', 18))
    """
    return _compile(descriptor.filters, descriptor.search)


def compile_cursor_predicate(descriptor: PaginationDescriptor) -> CompiledPredicate:
    """Compile the keyset boundary ``sort_by <op> ?`` of a cursor-mode descriptor.

    Returns an empty predicate when no cursor is active.
    """
    cursor = descriptor.cursor
    if cursor is None:
        return CompiledPredicate(None, (), None)
    operator = resolve_cursor_operator(descriptor.sort_direction, cursor.direction)
    node_type = exp.GT if operator is FilterOperator.GT else exp.LT
    return CompiledPredicate(
        PredicateGroup(Connector.AND, (PredicateTerm(cursor.field, operator, 1),)),
        (cursor.value,),
        node_type(this=_column(cursor.field), expression=exp.Placeholder()),
    )
