"""pagespec core: request validation, predicate compilation, cursors and page metadata.

- values.py: value kinds and the operator vocabulary
- params.py: immutable request descriptors
- builder.py: fluent builder, the only place validation fires
- compiler.py: filters and search to sqlglot conditions with ordered bind values
- cursor.py: opaque keyset cursor tokens
- metadata.py: limit-plus-one probe and response metadata
- wrapping.py: base query classification and CTE hoisting
- statement.py: data and count statements
"""

from pagespec.core.builder import PaginatorBuilder
from pagespec.core.compiler import (
    CompiledPredicate,
    Connector,
    PredicateGroup,
    PredicateTerm,
    bind_count,
    compile_cursor_predicate,
    compile_predicate,
)
from pagespec.core.cursor import decode_cursor, encode_cursor, fetch_direction, resolve_cursor_operator
from pagespec.core.metadata import PaginatorResponse, PaginatorResponseMeta, calculate_page, total_pages_for
from pagespec.core.params import CursorSpec, FilterCondition, PaginationDescriptor, SearchSpec
from pagespec.core.statement import PaginatedStatement, build_statement
from pagespec.core.values import CursorDirection, CursorValue, FilterOperator, FilterValue, SortDirection, ValueKind
from pagespec.core.wrapping import QueryShape, classify_query, wrap_query

__all__ = (
    "CompiledPredicate",
    "Connector",
    "CursorDirection",
    "CursorSpec",
    "CursorValue",
    "FilterCondition",
    "FilterOperator",
    "FilterValue",
    "PaginatedStatement",
    "PaginationDescriptor",
    "PaginatorBuilder",
    "PaginatorResponse",
    "PaginatorResponseMeta",
    "PredicateGroup",
    "PredicateTerm",
    "QueryShape",
    "SearchSpec",
    "SortDirection",
    "ValueKind",
    "bind_count",
    "build_statement",
    "calculate_page",
    "classify_query",
    "compile_cursor_predicate",
    "compile_predicate",
    "decode_cursor",
    "encode_cursor",
    "fetch_direction",
    "resolve_cursor_operator",
    "total_pages_for",
    "wrap_query",
)
