"""Classification and wrapping of base queries.

Filters, sort and limit are attached to the select returned by
:func:`wrap_query`. A base query that aggregates, sorts, limits or renames its
columns is wrapped as a subquery first, and a leading ``WITH`` clause is
hoisted above the wrapper so the CTE scope stays at the top level.
"""

from enum import Enum
from typing import TYPE_CHECKING, Optional

import sqlglot
from sqlglot import exp
from sqlglot.errors import ParseError, TokenError

from pagespec.exceptions import UnsupportedCTEError
from pagespec.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlglot.dialects.dialect import DialectType

__all__ = ("QueryShape", "classify_query", "wrap_query")

logger = get_logger("core.wrapping")

# clauses whose meaning changes when a WHERE or LIMIT is appended
_WRAPPING_CLAUSES = ("distinct", "group", "having", "qualify", "windows", "order", "limit", "offset", "fetch")


class QueryShape(str, Enum):
    PLAIN = "plain"
    CTE = "cte"
    UNSUPPORTED = "unsupported"


def _parse_query(sql: str, dialect: "Optional[DialectType]") -> tuple[QueryShape, Optional[exp.Query], str]:
    try:
        statements = [statement for statement in sqlglot.parse(sql, read=dialect) if statement is not None]
    except (ParseError, TokenError) as exc:
        return QueryShape.UNSUPPORTED, None, f"Base query could not be parsed: {exc}"
    if len(statements) != 1:
        return QueryShape.UNSUPPORTED, None, f"Base query must be exactly one statement, got {len(statements)}"
    statement = statements[0]
    if not isinstance(statement, exp.Query):
        return QueryShape.UNSUPPORTED, None, f"Base query must be a SELECT, got {statement.key.upper()}"
    if statement.args.get("with"):
        return QueryShape.CTE, statement, ""
    return QueryShape.PLAIN, statement, ""


def classify_query(sql: str, dialect: "Optional[DialectType]" = None) -> QueryShape:
    """Classify a base query as plain, CTE-prefixed or unsupported.

    Anything other than a single SELECT or set operation is unsupported,
    including unparsable text and data-modifying statements behind a ``WITH``.
    """
    return _parse_query(sql, dialect)[0]


def _is_simple_select(query: exp.Select) -> bool:
    if any(query.args.get(clause) for clause in _WRAPPING_CLAUSES):
        return False
    # output names must match the WHERE scope, so no aliases or computed columns
    return all(isinstance(projection, (exp.Star, exp.Column)) for projection in query.expressions)


def wrap_query(
    sql: str, dialect: "Optional[DialectType]" = None, alias: str = "_base"
) -> tuple[QueryShape, exp.Select]:
    """Return the select that pagination clauses attach to.

    Args:
        sql: Base query text.
        dialect: sqlglot dialect the query is written in.
        alias: Alias of the derived table when the base query is wrapped.

    Raises:
        UnsupportedCTEError: If the query is not a single SELECT.

    Returns:
        The query shape and a select free of WHERE-sensitive clauses:

        - ``SELECT a, b FROM t`` as is when it projects only bare columns,
          conditions are appended to its WHERE,
        - ``SELECT * FROM (<base>) AS _base`` for any other plain query,
        - ``WITH ... SELECT * FROM (<base body>) AS _base`` for CTE queries.
    """
    shape, query, reason = _parse_query(sql, dialect)
    if query is None:
        raise UnsupportedCTEError(reason, sql)

    if shape is QueryShape.CTE:
        with_ = query.args["with"]
        query.set("with", None)
        wrapped = exp.select("*").from_(query.subquery(alias, copy=False), copy=False)
        wrapped.set("with", with_)
        strategy = "hoisted CTE"
    elif isinstance(query, exp.Select) and _is_simple_select(query):
        wrapped = query
        strategy = "appended"
    else:
        wrapped = exp.select("*").from_(query.subquery(alias, copy=False), copy=False)
        strategy = "subquery"

    logger.debug("Base query shape %s, clauses %s", shape.value, strategy)
    return shape, wrapped
