"""Unit tests for query-string ingestion and HTTP response emission."""

from typing import Any
from urllib.parse import parse_qs, urlsplit

import msgspec
import pytest

from pagespec.core.builder import PaginatorBuilder
from pagespec.core.cursor import encode_cursor
from pagespec.core.metadata import PaginatorResponse, PaginatorResponseMeta, calculate_page
from pagespec.core.params import CursorSpec, FilterCondition
from pagespec.core.values import CursorDirection, FilterOperator, SortDirection
from pagespec.exceptions import (
    InvalidCursorError,
    InvalidFieldNameError,
    InvalidFilterOperatorError,
    InvalidFilterValueError,
    InvalidPageError,
    InvalidPerPageError,
    InvalidSortFieldError,
    SerializationError,
)
from pagespec.extensions.http import (
    builder_from_query_params,
    create_link_header,
    descriptor_from_query_params,
    encode_response,
    format_filter,
    pagination_headers,
    parse_filter,
    query_params_for,
    response_to_dict,
)


@pytest.mark.parametrize(
    ("expression", "expected"),
    [
        ("status:eq:active", FilterCondition.create("status", FilterOperator.EQ, "active")),
        ("age:gt:18", FilterCondition.create("age", FilterOperator.GT, 18)),
        ("score:gte:2.5", FilterCondition.create("score", FilterOperator.GTE, 2.5)),
        ("active:eq:true", FilterCondition.create("active", FilterOperator.EQ, True)),
        ("age:between:18,65", FilterCondition.create("age", FilterOperator.BETWEEN, 18, 65)),
        ("role:in:admin,editor", FilterCondition.create("role", FilterOperator.IN, ["admin", "editor"])),
        ("id:not_in:1, 2 ,3", FilterCondition.create("id", FilterOperator.NOT_IN, [1, 2, 3])),
        ("deleted_at:is_null", FilterCondition.create("deleted_at", FilterOperator.IS_NULL)),
        ("deleted_at:IS_NOT_NULL:", FilterCondition.create("deleted_at", FilterOperator.IS_NOT_NULL)),
        ("name:like:42", FilterCondition.create("name", FilterOperator.LIKE, "42")),
        ("name:contains:a:b", FilterCondition.create("name", FilterOperator.CONTAINS, "a:b")),
        ("users.email:eq:a@b.c", FilterCondition.create("users.email", FilterOperator.EQ, "a@b.c")),
        ("code:eq:inf", FilterCondition.create("code", FilterOperator.EQ, "inf")),
        ("zip:eq:1_000", FilterCondition.create("zip", FilterOperator.EQ, "1_000")),
        ("ratio:lt:2.5e-3", FilterCondition.create("ratio", FilterOperator.LT, 0.0025)),
    ],
    ids=[
        "string",
        "integer",
        "float",
        "boolean",
        "between",
        "in",
        "not-in-spaced",
        "is-null",
        "is-not-null-upper-case",
        "pattern-keeps-string",
        "value-with-colon",
        "qualified-field",
        "non-finite-float-stays-string",
        "digit-groups-stay-string",
        "exponent",
    ],
)
def test_parse_filter(expression: str, expected: FilterCondition) -> None:
    assert parse_filter(expression) == expected


@pytest.mark.parametrize(
    "expression",
    ["status", ":eq:1", "age:approx:1", "age:gt", "deleted_at:is_null:1", "age:between:1", "age:between:1,2,3"],
    ids=[
        "no-operator",
        "no-field",
        "unknown-operator",
        "missing-value",
        "null-with-value",
        "one-bound",
        "three-bounds",
    ],
)
def test_malformed_filters(expression: str) -> None:
    with pytest.raises(InvalidFilterOperatorError):
        parse_filter(expression)


def test_between_bounds_must_share_a_kind() -> None:
    with pytest.raises(InvalidFilterValueError):
        parse_filter("age:between:1,z")


def test_filter_field_is_validated() -> None:
    with pytest.raises(InvalidFieldNameError):
        parse_filter("1age:gt:5")


def test_query_string_ingestion() -> None:
    query = (
        "?page=2&per_page=10&sort_by=created_at&sort_direction=desc"
        "&filter=status:eq:active&filter=age:between:18,65"
        "&search=john&search_fields=name,email"
    )

    descriptor = descriptor_from_query_params(query)

    assert descriptor.page == 2
    assert descriptor.per_page == 10
    assert descriptor.sort_by == "created_at"
    assert descriptor.sort_direction is SortDirection.DESC
    assert descriptor.filters == (
        FilterCondition.create("status", FilterOperator.EQ, "active"),
        FilterCondition.create("age", FilterOperator.BETWEEN, 18, 65),
    )
    assert descriptor.search is not None
    assert descriptor.search.query == "john"
    assert descriptor.search.fields == ("name", "email")
    assert not descriptor.search.exact
    assert descriptor.total_count_enabled


def test_mapping_ingestion() -> None:
    params: dict[str, Any] = {"page": "3", "filter": ["a:eq:1", "b:eq:2"], "total_count": "false"}

    descriptor = descriptor_from_query_params(params)

    assert descriptor.page == 3
    assert [condition.field for condition in descriptor.filters] == ["a", "b"]
    assert descriptor.total_count_enabled is False


class _MultiDict(dict):  # type: ignore[type-arg]
    """Stand-in for framework multi-dicts exposing ``getall``."""

    def getall(self, key: str, default: Any = None) -> list[Any]:
        return list(self[key]) if key in self else default


def test_multidict_ingestion() -> None:
    params = _MultiDict(filter=["a:eq:1", "b:gt:2"], per_page=["5"])
    descriptor = descriptor_from_query_params(params)
    assert descriptor.per_page == 5
    assert len(descriptor.filters) == 2


def test_search_flags() -> None:
    descriptor = descriptor_from_query_params(
        "search=John&search_fields=name&search_exact=true&search_case_sensitive=1"
    )
    assert descriptor.search is not None
    assert descriptor.search.exact
    assert descriptor.search.case_sensitive


def test_defaults_when_absent() -> None:
    assert descriptor_from_query_params("") == PaginatorBuilder().build()


@pytest.mark.parametrize(
    ("query", "error"),
    [
        ("page=two", InvalidPageError),
        ("page=0", InvalidPageError),
        ("per_page=1.5", InvalidPerPageError),
        ("per_page=500", InvalidPerPageError),
        ("sort_by=id&sort_direction=up", InvalidSortFieldError),
        ("sort_by=id&cursor=garbage", InvalidCursorError),
    ],
    ids=["page-not-int", "page-zero", "per-page-float", "per-page-too-large", "bad-direction", "bad-cursor"],
)
def test_invalid_query_params(query: str, error: type[Exception]) -> None:
    with pytest.raises(error):
        descriptor_from_query_params(query)


def test_sort_field_schema_is_enforced() -> None:
    with pytest.raises(InvalidSortFieldError):
        descriptor_from_query_params("sort_by=password", allowed_sort_fields=["id", "name"])


def test_cursor_ingestion() -> None:
    token = encode_cursor(CursorSpec("id", 10, CursorDirection.AFTER))
    descriptor = descriptor_from_query_params({"sort_by": "id", "cursor": token})
    assert descriptor.cursor == CursorSpec("id", 10, CursorDirection.AFTER)


@pytest.mark.parametrize(
    "expression",
    ["status:eq:active", "age:between:18,65", "role:in:admin,editor", "deleted_at:is_null", "flag:ne:false"],
)
def test_format_filter_reverses_parse(expression: str) -> None:
    assert format_filter(parse_filter(expression)) == expression


def test_query_params_reproduce_descriptor() -> None:
    descriptor = (
        PaginatorBuilder()
        .per_page(10)
        .sort_desc("created_at")
        .filter_eq("status", "active")
        .search_exact("john", ["name"])
        .disable_total_count()
        .build()
    )

    pairs = query_params_for(descriptor)

    assert ("sort_direction", "desc") in pairs
    assert ("filter", "status:eq:active") in pairs
    assert ("search_exact", "true") in pairs
    assert ("total_count", "false") in pairs
    assert descriptor_from_query_params(dict((key, [value]) for key, value in pairs)) == descriptor


def _response(**meta: Any) -> PaginatorResponse[dict[str, int]]:
    defaults: dict[str, Any] = {"page": 1, "per_page": 2, "has_next": True, "has_prev": False}
    return PaginatorResponse(meta=PaginatorResponseMeta(**{**defaults, **meta}), data=[{"id": 1}, {"id": 2}])


def test_response_to_dict_omits_absent_metadata() -> None:
    payload = response_to_dict(_response())
    assert payload == {
        "data": [{"id": 1}, {"id": 2}],
        "meta": {"page": 1, "per_page": 2, "has_next": True, "has_prev": False},
    }


def test_encode_response() -> None:
    encoded = encode_response(_response(total=5, total_pages=3))
    decoded = msgspec.json.decode(encoded)
    assert decoded["meta"]["total"] == 5
    assert decoded["data"] == [{"id": 1}, {"id": 2}]


def test_encode_response_with_unencodable_row() -> None:
    response = PaginatorResponse(
        meta=PaginatorResponseMeta(page=1, per_page=1, has_next=False, has_prev=False), data=[object()]
    )
    with pytest.raises(SerializationError):
        encode_response(response)


def test_pagination_headers() -> None:
    assert pagination_headers(_response(total=5, total_pages=3).meta) == {
        "X-Current-Page": "1",
        "X-Per-Page": "2",
        "X-Total-Count": "5",
        "X-Total-Pages": "3",
    }
    assert pagination_headers(_response().meta) == {"X-Current-Page": "1", "X-Per-Page": "2"}


def _links(header: str) -> dict[str, dict[str, list[str]]]:
    links = {}
    for part in header.split(", "):
        target, rel = part.split("; ")
        url = target.strip("<>")
        links[rel.split('"')[1]] = parse_qs(urlsplit(url).query)
    return links


def test_offset_link_header() -> None:
    descriptor = PaginatorBuilder().page(2).per_page(2).filter_eq("status", "active").build()
    meta = calculate_page([{"id": 3}, {"id": 4}, {"id": 5}], descriptor, total=5).meta

    header = create_link_header("https://api.example.com/users", descriptor, meta)

    links = _links(header)
    assert list(links) == ["first", "prev", "next", "last"]
    assert links["first"]["page"] == ["1"]
    assert links["prev"]["page"] == ["1"]
    assert links["next"]["page"] == ["3"]
    assert links["last"]["page"] == ["3"]
    assert links["next"]["filter"] == ["status:eq:active"]
    assert links["next"]["per_page"] == ["2"]
    assert header.startswith("<https://api.example.com/users?page=1&")


def test_link_header_keeps_existing_query() -> None:
    descriptor = PaginatorBuilder().build()
    meta = calculate_page([], descriptor, total=0).meta

    header = create_link_header("https://api.example.com/users?tenant=a", descriptor, meta)

    assert header.startswith("<https://api.example.com/users?tenant=a&page=1")
    assert 'rel="last"' in header
    assert "page=1" in header.split(", ")[-1]


def test_cursor_link_header() -> None:
    descriptor = PaginatorBuilder().per_page(2).sort_asc("id").cursor_after("id", 2).disable_total_count().build()
    meta = calculate_page([{"id": 3}, {"id": 4}, {"id": 5}], descriptor).meta

    links = _links(create_link_header("/items", descriptor, meta))

    assert list(links) == ["first", "prev", "next"]
    assert links["next"]["cursor"] == [meta.next_cursor]
    assert links["prev"]["cursor"] == [meta.prev_cursor]
    assert links["next"]["sort_by"] == ["id"]


def test_empty_before_page_continues_from_first_link() -> None:
    descriptor = PaginatorBuilder().per_page(2).sort_asc("id").cursor_before("id", 1).disable_total_count().build()
    meta = calculate_page([], descriptor).meta

    links = _links(create_link_header("/items", descriptor, meta))

    assert list(links) == ["first"]
    assert "cursor" not in links["first"]
    assert links["first"]["sort_by"] == ["id"]
    assert descriptor_from_query_params(links["first"]).cursor is None
