from typing import Any, Optional

__all__ = (
    "ExecutionError",
    "ImproperConfigurationError",
    "InvalidCursorError",
    "InvalidFieldNameError",
    "InvalidFilterOperatorError",
    "InvalidFilterValueError",
    "InvalidPageError",
    "InvalidPerPageError",
    "InvalidSearchError",
    "InvalidSortFieldError",
    "PageSpecError",
    "PaginationValidationError",
    "SerializationError",
    "UnsupportedCTEError",
)


class PageSpecError(Exception):
    """Base exception class from which all pagespec exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``PageSpecError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(PageSpecError):
    """Improper Configuration error.

    Raised when the library is configured or called in a way that cannot work,
    e.g. a total count is required but was never supplied.
    """


class SerializationError(PageSpecError):
    """Encoding or decoding of an object failed."""


class ExecutionError(PageSpecError):
    """A database error raised while running a data or count statement."""


# -- Request Validation Errors --
class PaginationValidationError(PageSpecError):
    """Base class for errors caused by a malformed pagination request.

    These are raised synchronously while a request is validated and are never
    retryable. ``value`` holds the offending input.
    """

    value: Any

    def __init__(self, message: str, value: Any = None) -> None:
        super().__init__(detail=message)
        self.value = value


class InvalidPageError(PaginationValidationError):
    """Page number below 1."""

    def __init__(self, page: Any) -> None:
        super().__init__(f"Invalid page number: {page!r}. Page must be >= 1", page)


class InvalidPerPageError(PaginationValidationError):
    """Page size outside the accepted range."""

    def __init__(self, per_page: Any, minimum: int = 1, maximum: int = 100) -> None:
        super().__init__(
            f"Invalid per_page value: {per_page!r}. Must be between {minimum} and {maximum}", per_page
        )


class InvalidFilterOperatorError(PaginationValidationError):
    """Unknown filter operator, or values that do not match the operator's arity."""


class InvalidFilterValueError(InvalidFilterOperatorError):
    """A filter value of a kind the operator cannot compare against."""


class InvalidFieldNameError(PaginationValidationError):
    """A filter or search field that is not a plain (optionally dotted) identifier."""

    def __init__(self, field: Any, message: Optional[str] = None) -> None:
        super().__init__(message or f"Invalid field name {field!r}: must be an identifier", field)


class InvalidSearchError(PaginationValidationError):
    """Search requested without any field to search in."""


class InvalidSortFieldError(PaginationValidationError):
    """Sort or cursor field missing from the sortable schema, or malformed sort input."""


class InvalidCursorError(PaginationValidationError):
    """Malformed cursor token, failed structural decode, or cursor without a matching sort field."""


class UnsupportedCTEError(PaginationValidationError):
    """Base query with a structure the wrapping policy cannot safely handle."""

    sql: str

    def __init__(self, message: str, sql: str) -> None:
        super().__init__(f"{message}\nSQL: {sql}", sql)
        self.sql = sql
