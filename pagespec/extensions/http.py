"""Framework-agnostic request ingestion and response emission.

Ingestion reads a query string, or any mapping of query parameters, into a
:class:`~pagespec.core.builder.PaginatorBuilder`::

    ?page=2&per_page=10&sort_by=created_at&sort_direction=desc
    &filter=status:eq:active&filter=age:between:18,65
    &search=john&search_fields=name,email

Filters use the ``field:operator:value`` grammar. ``in``, ``not_in`` and
``between`` take comma separated values, ``is_null`` and ``is_not_null`` take
none. Values are typed integer, then float, then boolean, then string; pattern
operators always keep the string.

Emission turns a :class:`~pagespec.core.metadata.PaginatorResponse` into a
JSON-ready dict or bytes, ``X-*`` headers, and an RFC 8288 ``Link`` header.
"""

import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict
from typing import Any, Optional, Union
from urllib.parse import parse_qs, urlencode

from pagespec.config import MAX_PER_PAGE, MIN_PER_PAGE
from pagespec.core.builder import PaginatorBuilder
from pagespec.core.metadata import PaginatorResponse, PaginatorResponseMeta
from pagespec.core.params import FilterCondition, PaginationDescriptor
from pagespec.core.values import FilterOperator, FilterValue, ValueKind
from pagespec.exceptions import InvalidFilterOperatorError, InvalidPageError, InvalidPerPageError
from pagespec.utils.logging import get_logger
from pagespec.utils.serializers import to_json

__all__ = (
    "QueryParams",
    "builder_from_query_params",
    "create_link_header",
    "descriptor_from_query_params",
    "encode_response",
    "format_filter",
    "pagination_headers",
    "parse_filter",
    "query_params_for",
    "response_to_dict",
)

logger = get_logger("extensions.http")

QueryParams = Union[str, Mapping[str, Any]]

_INT_RE = re.compile(r"[+-]?\d+\Z", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?\Z", re.ASCII)
_TRUE = frozenset({"true", "1", "yes", "on"})
_FALSE = frozenset({"false", "0", "no", "off"})


# -- Ingestion --
def _parse_scalar(text: str, *, allow_bool: bool = True) -> Any:
    if _INT_RE.match(text):
        return int(text)
    if _FLOAT_RE.match(text):
        number = float(text)
        if math.isfinite(number):
            return number
    if allow_bool and text in {"true", "false"}:
        return text == "true"
    return text


def parse_filter(expression: str) -> FilterCondition:
    """Parse one ``field:operator:value`` expression.

    Raises:
        InvalidFilterOperatorError: If the expression is malformed, names an
            unknown operator, or its values do not fit the operator.
        InvalidFieldNameError: If the field is not an identifier.
    """
    parts = expression.split(":", 2)
    if len(parts) < 2 or not parts[0].strip():
        msg = f"Malformed filter {expression!r}: expected field:operator:value"
        raise InvalidFilterOperatorError(msg, expression)
    field_name, operator_name = parts[0].strip(), parts[1].strip().lower()
    try:
        operator = FilterOperator(operator_name)
    except ValueError:
        msg = f"Unknown filter operator {operator_name!r} in {expression!r}"
        raise InvalidFilterOperatorError(msg, expression) from None

    if operator.arity == 0:
        if len(parts) == 3 and parts[2].strip():
            msg = f"Operator {operator.value!r} takes no value, got {expression!r}"
            raise InvalidFilterOperatorError(msg, expression)
        return FilterCondition.create(field_name, operator)
    if len(parts) < 3:
        msg = f"Malformed filter {expression!r}: operator {operator.value!r} needs a value"
        raise InvalidFilterOperatorError(msg, expression)

    raw = parts[2]
    if operator.takes_list:
        items = [item.strip() for item in raw.split(",") if item.strip()]
        return FilterCondition.create(field_name, operator, [_parse_scalar(item) for item in items])
    if operator is FilterOperator.BETWEEN:
        bounds = [bound.strip() for bound in raw.split(",")]
        if len(bounds) != 2 or not all(bounds):
            msg = f"Operator 'between' needs two comma separated bounds, got {expression!r}"
            raise InvalidFilterOperatorError(msg, expression)
        return FilterCondition.create(field_name, operator, *(_parse_scalar(b, allow_bool=False) for b in bounds))
    if operator.is_pattern:
        return FilterCondition.create(field_name, operator, raw)
    return FilterCondition.create(field_name, operator, _parse_scalar(raw.strip()))


def _normalize(params: QueryParams) -> Mapping[str, Any]:
    if isinstance(params, str):
        return parse_qs(params.lstrip("?"), keep_blank_values=True)
    return params


def _get_all(params: Mapping[str, Any], key: str) -> list[str]:
    getall = getattr(params, "getall", None)
    if getall is not None:
        return [str(value) for value in getall(key, [])]
    getlist = getattr(params, "getlist", None)
    if getlist is not None:
        return [str(value) for value in getlist(key)]
    value = params.get(key)
    if value is None:
        return []
    if isinstance(value, (str, bytes)) or not isinstance(value, Iterable):
        return [str(value)]
    return [str(item) for item in value]


def _get_one(params: Mapping[str, Any], key: str) -> Optional[str]:
    values = _get_all(params, key)
    return values[0] if values else None


def _parse_flag(value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return default


def builder_from_query_params(
    params: QueryParams, *, allowed_sort_fields: Optional[Iterable[str]] = None
) -> PaginatorBuilder:
    """Stage the pagination inputs of a query string or parameter mapping.

    Repeated ``filter`` entries are AND-combined in encounter order. Validation
    of page bounds, sort fields and the cursor happens on ``build()``.

    Raises:
        InvalidPageError: If ``page`` is not an integer.
        InvalidPerPageError: If ``per_page`` is not an integer.
        InvalidFilterOperatorError: If a ``filter`` expression is malformed.
    """
    params = _normalize(params)
    builder = PaginatorBuilder()
    if allowed_sort_fields is not None:
        builder.allowed_sort_fields(*allowed_sort_fields)

    page = _get_one(params, "page")
    if page is not None:
        if not _INT_RE.match(page.strip()):
            raise InvalidPageError(page)
        builder.page(int(page))
    per_page = _get_one(params, "per_page")
    if per_page is not None:
        if not _INT_RE.match(per_page.strip()):
            raise InvalidPerPageError(per_page, MIN_PER_PAGE, MAX_PER_PAGE)
        builder.per_page(int(per_page))

    sort_by = _get_one(params, "sort_by")
    if sort_by:
        builder.sort_by(sort_by.strip(), (_get_one(params, "sort_direction") or "asc").strip())

    for expression in _get_all(params, "filter"):
        condition = parse_filter(expression)
        builder.filter(condition.field, condition.operator, *(value.to_python() for value in condition.values))

    query = _get_one(params, "search")
    if query:
        fields = [name.strip() for name in (_get_one(params, "search_fields") or "").split(",") if name.strip()]
        builder.search(
            query,
            fields,
            case_sensitive=_parse_flag(_get_one(params, "search_case_sensitive"), False),
            exact=_parse_flag(_get_one(params, "search_exact"), False),
        )

    token = _get_one(params, "cursor")
    if token:
        builder.cursor_from_encoded(token.strip())

    if not _parse_flag(_get_one(params, "total_count"), True):
        builder.disable_total_count()
    return builder


def descriptor_from_query_params(
    params: QueryParams, *, allowed_sort_fields: Optional[Iterable[str]] = None
) -> PaginationDescriptor:
    """Shortcut for ``builder_from_query_params(...).build()``."""
    return builder_from_query_params(params, allowed_sort_fields=allowed_sort_fields).build()


# -- Emission --
def _format_value(value: FilterValue) -> str:
    if value.kind is ValueKind.LIST:
        return ",".join(_format_value(item) for item in value.value)
    if value.kind is ValueKind.BOOLEAN:
        return "true" if value.value else "false"
    return str(value.value)


def format_filter(condition: FilterCondition) -> str:
    """Render a condition in the ``field:operator:value`` grammar."""
    if condition.operator.arity == 0:
        return f"{condition.field}:{condition.operator.value}"
    return f"{condition.field}:{condition.operator.value}:{','.join(_format_value(v) for v in condition.values)}"


def query_params_for(descriptor: PaginationDescriptor) -> list[tuple[str, str]]:
    """Query parameters that reproduce ``descriptor``, except page and cursor."""
    pairs: list[tuple[str, str]] = [("per_page", str(descriptor.per_page))]
    if descriptor.sort_by is not None:
        pairs.extend((("sort_by", descriptor.sort_by), ("sort_direction", descriptor.sort_direction.value)))
    pairs.extend(("filter", format_filter(condition)) for condition in descriptor.filters)
    search = descriptor.search
    if search is not None:
        pairs.extend((("search", search.query), ("search_fields", ",".join(search.fields))))
        if search.exact:
            pairs.append(("search_exact", "true"))
        if search.case_sensitive:
            pairs.append(("search_case_sensitive", "true"))
    if not descriptor.total_count_enabled:
        pairs.append(("total_count", "false"))
    return pairs


def response_to_dict(response: PaginatorResponse[Any]) -> dict[str, Any]:
    """Payload form of a response; absent optional metadata is omitted."""
    meta = {name: value for name, value in asdict(response.meta).items() if value is not None}
    return {"data": list(response.data), "meta": meta}


def encode_response(response: PaginatorResponse[Any]) -> bytes:
    """JSON-encode a response.

    Raises:
        SerializationError: If a row cannot be encoded.
    """
    return to_json(response_to_dict(response), as_bytes=True)


def pagination_headers(meta: PaginatorResponseMeta) -> dict[str, str]:
    """Mirror page metadata into headers; total headers only when counted."""
    headers = {"X-Current-Page": str(meta.page), "X-Per-Page": str(meta.per_page)}
    if meta.total is not None:
        headers["X-Total-Count"] = str(meta.total)
    if meta.total_pages is not None:
        headers["X-Total-Pages"] = str(meta.total_pages)
    return headers


def create_link_header(base_url: str, descriptor: PaginationDescriptor, meta: PaginatorResponseMeta) -> str:
    """Build an RFC 8288 ``Link`` header with ``first``, ``prev``, ``next`` and ``last``.

    Cursor-mode responses link ``prev``/``next`` through their cursors and carry
    no ``last`` relation.
    """
    common = query_params_for(descriptor)
    separator = "&" if "?" in base_url else "?"

    def link(rel: str, extra: list[tuple[str, str]]) -> str:
        return f'<{base_url}{separator}{urlencode(extra + common)}>; rel="{rel}"'

    links = [link("first", [("page", "1")])]
    if descriptor.is_cursor_mode:
        if meta.prev_cursor is not None:
            links.append(link("prev", [("cursor", meta.prev_cursor)]))
        if meta.next_cursor is not None:
            links.append(link("next", [("cursor", meta.next_cursor)]))
    else:
        if meta.has_prev:
            links.append(link("prev", [("page", str(descriptor.page - 1))]))
        if meta.has_next:
            links.append(link("next", [("page", str(descriptor.page + 1))]))
        if meta.total_pages is not None:
            links.append(link("last", [("page", str(max(meta.total_pages, 1)))]))
    logger.debug("Built Link header with %d relation(s)", len(links))
    return ", ".join(links)
