"""Data and count statements for one pagination request."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

from sqlglot import exp
from sqlglot.dialects.dialect import Dialect

from pagespec.config import PaginationConfig, get_default_config
from pagespec.core.compiler import compile_cursor_predicate, compile_predicate
from pagespec.core.cursor import fetch_direction
from pagespec.core.params import PaginationDescriptor
from pagespec.core.values import CursorDirection, SortDirection
from pagespec.core.wrapping import QueryShape, wrap_query
from pagespec.exceptions import ImproperConfigurationError
from pagespec.utils.logging import get_logger, pagination_fields

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

__all__ = ("PaginatedStatement", "build_statement")

logger = get_logger("core.statement")


@dataclass(frozen=True)
class PaginatedStatement:
    """Statements and bind values for one page.

    Attributes:
        sql: Data statement, limited to ``per_page + 1`` rows.
        parameters: Bind values of ``sql`` in placeholder order.
        count_sql: Independent count statement, ``None`` when counting is disabled.
        count_parameters: Bind values of ``count_sql``.
        shape: Shape of the base query.
        reverse_results: True when rows come back in reverse of the nominal order.
    """

    sql: str
    parameters: tuple[Any, ...]
    count_sql: Optional[str]
    count_parameters: tuple[Any, ...]
    shape: QueryShape
    reverse_results: bool = False


def _conjoin(select: exp.Select, *conditions: Optional[exp.Expression]) -> exp.Select:
    """AND ``conditions`` onto the WHERE clause of ``select`` in place."""
    parts: list[exp.Expression] = []
    existing = select.args.get("where")
    if existing is not None:
        parts.append(existing.this)
    parts.extend(condition for condition in conditions if condition is not None)
    if not parts:
        return select
    if len(parts) > 1:
        parts = [
            exp.Paren(this=part) if isinstance(part, exp.Connector) and not isinstance(part, exp.And) else part
            for part in parts
        ]
    combined = parts[0]
    for part in parts[1:]:
        combined = exp.And(this=combined, expression=part)
    select.set("where", exp.Where(this=combined))
    return select


def _ordered(field_name: str, direction: SortDirection, dialect: "Optional[DialectType]") -> exp.Ordered:
    # nulls placement matching the dialect's default, so none is rendered
    null_ordering = Dialect.get_or_raise(dialect).NULL_ORDERING
    desc = direction is SortDirection.DESC
    nulls_first = null_ordering != "nulls_are_last" and (desc != (null_ordering == "nulls_are_small"))
    return exp.Ordered(this=exp.column(*reversed(field_name.split("."))), desc=desc, nulls_first=nulls_first)


def _count_statement(filtered: exp.Select, alias: str) -> exp.Select:
    with_ = filtered.args.get("with")
    filtered.set("with", None)
    count = exp.select(exp.Count(this=exp.Star())).from_(filtered.subquery(alias, copy=False), copy=False)
    if with_ is not None:
        count.set("with", with_)
    return count


def build_statement(
    base_query: str,
    descriptor: PaginationDescriptor,
    *,
    parameters: Sequence[Any] = (),
    config: Optional[PaginationConfig] = None,
) -> PaginatedStatement:
    """Build the data and count statements for ``descriptor`` over ``base_query``.

    ``base_query`` may use positional ``?`` placeholders bound by
    ``parameters``. Bind values are ordered: base query, filters, search,
    cursor boundary, ``LIMIT``, then ``OFFSET`` outside cursor mode.

    Raises:
        UnsupportedCTEError: If the base query is not a single SELECT.
        ImproperConfigurationError: If ``parameters`` does not match the base query's placeholders.
    """
    config = config or get_default_config()
    dialect = config.dialect
    base_parameters = tuple(parameters)

    shape, select = wrap_query(base_query, dialect, config.base_alias)
    expected = sum(1 for placeholder in select.find_all(exp.Placeholder) if not placeholder.this)
    if expected != len(base_parameters):
        msg = f"Base query has {expected} positional placeholder(s) but {len(base_parameters)} parameter(s) were given"
        raise ImproperConfigurationError(msg)

    compiled = compile_predicate(descriptor)
    filtered = _conjoin(select, compiled.expression)
    filtered_parameters = base_parameters + compiled.parameters

    count_sql: Optional[str] = None
    count_parameters: tuple[Any, ...] = ()
    if descriptor.total_count_enabled:
        count_sql = _count_statement(filtered.copy(), config.count_alias).sql(dialect=dialect)
        count_parameters = filtered_parameters

    cursor = compile_cursor_predicate(descriptor)
    data = _conjoin(filtered, cursor.expression)
    direction = fetch_direction(descriptor.sort_direction, descriptor.cursor)
    if descriptor.sort_by is not None:
        data.set("order", exp.Order(expressions=[_ordered(descriptor.sort_by, direction, dialect)]))
    data = data.limit(exp.Placeholder(), copy=False)
    data_parameters = filtered_parameters + cursor.parameters + (descriptor.fetch_limit,)
    if not descriptor.is_cursor_mode:
        data = data.offset(exp.Placeholder(), copy=False)
        data_parameters += (descriptor.offset,)

    sql = data.sql(dialect=dialect)
    reverse_results = descriptor.cursor is not None and descriptor.cursor.direction is CursorDirection.BEFORE
    logger.debug(
        "Built %s statement: %d data / %d count bind values, total count %s",
        shape.value,
        len(data_parameters),
        len(count_parameters),
        "enabled" if count_sql is not None else "disabled",
        extra=pagination_fields(
            descriptor,
            shape=shape.value,
            data_binds=len(data_parameters),
            count_binds=len(count_parameters),
        ),
    )
    return PaginatedStatement(
        sql=sql,
        parameters=data_parameters,
        count_sql=count_sql,
        count_parameters=count_parameters,
        shape=shape,
        reverse_results=reverse_results,
    )
