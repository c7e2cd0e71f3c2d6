"""pagespec: validated pagination requests compiled to injection-safe SQL."""

from pagespec import core, exceptions, utils
from pagespec.__metadata__ import __version__
from pagespec.adapters.sqlite import SqliteExecutor
from pagespec.config import PaginationConfig, get_default_config
from pagespec.core import (
    CursorDirection,
    CursorSpec,
    FilterCondition,
    FilterOperator,
    FilterValue,
    PaginationDescriptor,
    PaginatorBuilder,
    PaginatorResponse,
    PaginatorResponseMeta,
    QueryShape,
    SearchSpec,
    SortDirection,
    build_statement,
    calculate_page,
    compile_predicate,
    decode_cursor,
    encode_cursor,
)
from pagespec.driver import apaginate, paginate
from pagespec.exceptions import (
    ImproperConfigurationError,
    InvalidCursorError,
    InvalidFilterOperatorError,
    InvalidPageError,
    InvalidPerPageError,
    InvalidSortFieldError,
    PageSpecError,
    PaginationValidationError,
    UnsupportedCTEError,
)
from pagespec.protocols import AsyncQueryExecutor, SyncQueryExecutor

__all__ = (
    "AsyncQueryExecutor",
    "CursorDirection",
    "CursorSpec",
    "FilterCondition",
    "FilterOperator",
    "FilterValue",
    "ImproperConfigurationError",
    "InvalidCursorError",
    "InvalidFilterOperatorError",
    "InvalidPageError",
    "InvalidPerPageError",
    "InvalidSortFieldError",
    "PageSpecError",
    "PaginationConfig",
    "PaginationDescriptor",
    "PaginationValidationError",
    "PaginatorBuilder",
    "PaginatorResponse",
    "PaginatorResponseMeta",
    "QueryShape",
    "SearchSpec",
    "SortDirection",
    "SqliteExecutor",
    "SyncQueryExecutor",
    "UnsupportedCTEError",
    "__version__",
    "apaginate",
    "build_statement",
    "calculate_page",
    "compile_predicate",
    "core",
    "decode_cursor",
    "encode_cursor",
    "exceptions",
    "paginate",
    "utils",
)
