"""Unit tests for base query classification and wrapping."""

import pytest
from sqlglot import exp

from pagespec.core.wrapping import QueryShape, classify_query, wrap_query
from pagespec.exceptions import PaginationValidationError, UnsupportedCTEError


@pytest.mark.parametrize(
    ("sql", "shape"),
    [
        ("SELECT * FROM users", QueryShape.PLAIN),
        ("SELECT id, name FROM users WHERE active = 1 ORDER BY name", QueryShape.PLAIN),
        ("SELECT dept, COUNT(*) AS n FROM emp GROUP BY dept", QueryShape.PLAIN),
        ("SELECT id FROM a UNION SELECT id FROM b", QueryShape.PLAIN),
        ("WITH active AS (SELECT * FROM users WHERE active = 1) SELECT * FROM active", QueryShape.CTE),
        ("WITH a AS (SELECT 1 AS x), b AS (SELECT x FROM a) SELECT x FROM b", QueryShape.CTE),
        ("DELETE FROM users", QueryShape.UNSUPPORTED),
        ("INSERT INTO users (id) VALUES (1)", QueryShape.UNSUPPORTED),
        ("UPDATE users SET name = 'x'", QueryShape.UNSUPPORTED),
        ("SELECT 1; SELECT 2", QueryShape.UNSUPPORTED),
        ("", QueryShape.UNSUPPORTED),
    ],
    ids=[
        "select",
        "ordered-select",
        "aggregate",
        "union",
        "cte",
        "chained-ctes",
        "delete",
        "insert",
        "update",
        "two-statements",
        "empty",
    ],
)
def test_classify_query(sql: str, shape: QueryShape) -> None:
    assert classify_query(sql) is shape


def test_unparsable_query_is_unsupported() -> None:
    assert classify_query("SELECT * FROM users WHERE (") is QueryShape.UNSUPPORTED


def test_simple_select_is_extended_in_place() -> None:
    shape, select = wrap_query("SELECT id, name FROM users WHERE active = 1")

    assert shape is QueryShape.PLAIN
    assert select.sql() == "SELECT id, name FROM users WHERE active = 1"


@pytest.mark.parametrize(
    "sql",
    [
        "SELECT dept, COUNT(*) AS n FROM emp GROUP BY dept",
        "SELECT COUNT(*) AS n FROM emp",
        "SELECT DISTINCT dept FROM emp",
        "SELECT id FROM users ORDER BY id",
        "SELECT id FROM users LIMIT 10",
        "SELECT id, ROW_NUMBER() OVER (ORDER BY id) AS rn FROM users",
        "SELECT id FROM a UNION SELECT id FROM b",
        "SELECT id AS user_id FROM users",
        "SELECT price * qty FROM lines",
    ],
    ids=["group-by", "aggregate", "distinct", "order-by", "limit", "window", "union", "alias", "computed"],
)
def test_queries_that_must_be_wrapped(sql: str) -> None:
    shape, select = wrap_query(sql)

    assert shape is QueryShape.PLAIN
    assert select.sql().startswith("SELECT * FROM (")
    assert select.sql().endswith(") AS _base")


def test_wrap_alias_is_configurable() -> None:
    _, select = wrap_query("SELECT DISTINCT dept FROM emp", alias="inner_q")
    assert select.sql().endswith(") AS inner_q")


def test_cte_is_hoisted_above_the_wrapper() -> None:
    sql = "WITH active AS (SELECT * FROM users WHERE active = 1) SELECT id, name FROM active"

    shape, select = wrap_query(sql)

    rendered = select.sql()
    assert shape is QueryShape.CTE
    assert rendered.startswith("WITH active AS (")
    assert "FROM (WITH" not in rendered
    assert "SELECT * FROM (SELECT id, name FROM active) AS _base" in rendered
    assert isinstance(select.args["with"], exp.With)


@pytest.mark.parametrize(
    "sql", ["DELETE FROM users", "SELECT 1; SELECT 2", "WITH d AS (SELECT 1) DELETE FROM users"]
)
def test_unsupported_queries_raise(sql: str) -> None:
    with pytest.raises(UnsupportedCTEError) as exc_info:
        wrap_query(sql)
    assert exc_info.value.sql == sql
    assert isinstance(exc_info.value, PaginationValidationError)


def test_dialect_aware_parsing() -> None:
    shape, select = wrap_query('SELECT "id" FROM "users"', dialect="sqlite")
    assert shape is QueryShape.PLAIN
    assert select.sql(dialect="sqlite") == 'SELECT "id" FROM "users"'
