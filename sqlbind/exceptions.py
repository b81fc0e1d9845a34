import os
import traceback
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, ClassVar, Optional

__all__ = (
    "DriverErrorInfo",
    "DriverExecutionError",
    "FormatValueError",
    "ImproperConfigurationError",
    "MissingParameterError",
    "ParameterError",
    "QueryContext",
    "QueryError",
    "SQLBindError",
    "SQLFileNotFoundError",
    "SQLFileParseError",
    "StatementNotFoundError",
    "TransformedError",
    "capture_call_site",
)

_PACKAGE_ROOT = str(Path(__file__).resolve().parent) + os.sep


@dataclass(frozen=True, slots=True)
class DriverErrorInfo:
    """Normalized view of an error raised by the database driver."""

    code: "Optional[str]"
    message: str
    detail: "Optional[str]" = None
    hint: "Optional[str]" = None
    original: "Optional[BaseException]" = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class QueryContext:
    """Diagnostic bundle attached to every failed execution."""

    name: str
    sql: "Optional[str]"
    values: "tuple[Any, ...]" = ()
    params: "Optional[Any]" = None
    error: "Optional[DriverErrorInfo]" = None


def capture_call_site() -> "list[traceback.FrameSummary]":
    """Return the current stack with every frame from this package removed."""
    return [frame for frame in traceback.extract_stack() if not frame.filename.startswith(_PACKAGE_ROOT)]


class SQLBindError(Exception):
    """Base exception class from which all sqlbind exceptions inherit."""

    detail: str
    kind: "ClassVar[str]" = "error"
    query_context: "Optional[QueryContext]" = None
    call_site: "Optional[list[traceback.FrameSummary]]" = None

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLBindError``.

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

    def with_context(
        self, query_context: QueryContext, call_site: "Optional[list[traceback.FrameSummary]]" = None
    ) -> "SQLBindError":
        """Attach the query context (and optionally the caller's stack) and return ``self``."""
        self.query_context = query_context
        if call_site is not None:
            self.call_site = call_site
        return self

    def format_call_site(self) -> str:
        """Render the captured caller stack like a traceback."""
        if not self.call_site:
            return ""
        return "".join(traceback.format_list(self.call_site))


class ImproperConfigurationError(SQLBindError):
    """Raised when the facade or a driver is configured incorrectly."""

    kind = "improper_configuration"


class SQLFileNotFoundError(SQLBindError):
    """Raised when a SQL file or statement root cannot be read."""

    kind = "sql_file_not_found"

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        self.path = path
        super().__init__(message or f"SQL file not found: {path}")


class SQLFileParseError(SQLBindError):
    """Raised when SQL files cannot be registered."""

    kind = "sql_file_parse"

    def __init__(self, path: str, message: str) -> None:
        self.path = path
        super().__init__(f"Failed to load SQL file {path}: {message}")


# -- SQL Query Errors --
class QueryError(SQLBindError):
    """Base class for errors surfaced from a single query execution."""

    kind = "query"


class StatementNotFoundError(QueryError):
    """Raised when a statement name is absent from the registry."""

    kind = "statement_not_found"

    def __init__(self, name: str, suggestions: "Optional[list[str]]" = None) -> None:
        self.name = name
        self.suggestions = suggestions or []
        message = f"Statement {name!r} not found"
        if self.suggestions:
            message = f"{message}. Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)


# -- SQL Parameter Errors --
class ParameterError(QueryError):
    """Base class for parameter-related errors."""

    kind = "parameter"
    sql: Optional[str]

    def __init__(self, message: str, sql: Optional[str] = None) -> None:
        """Initialize with optional SQL context."""
        detail_message = message
        if sql:
            detail_message = f"{message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.sql = sql


class MissingParameterError(ParameterError):
    """Raised when one or more named parameters cannot be resolved."""

    kind = "missing_parameter"

    def __init__(self, missing: "tuple[str, ...]", sql: Optional[str] = None, name: Optional[str] = None) -> None:
        self.missing = missing
        prefix = f"Missing parameters for {name!r}" if name else "Missing parameters"
        super().__init__(f"{prefix}: {', '.join(missing)}", sql)


class FormatValueError(ParameterError):
    """Raised when a format value cannot be rendered as SQL text."""

    kind = "format_value"

    def __init__(self, value: Any, reason: str, name: Optional[str] = None) -> None:
        self.value = value
        target = f" for {name!r}" if name else ""
        super().__init__(f"Cannot format {value!r}{target}: {reason}")


class DriverExecutionError(QueryError):
    """Raised when the database driver rejects a statement."""

    kind = "driver_execution"

    def __init__(self, error: DriverErrorInfo, name: Optional[str] = None) -> None:
        self.error = error
        code = f" [{error.code}]" if error.code else ""
        where = f" while executing {name!r}" if name else ""
        super().__init__(f"Database error{code}{where}: {error.message}")


class TransformedError(SQLBindError):
    """Carries a non-exception value returned by a configured error transformer."""

    kind = "transformed"

    def __init__(self, value: Any) -> None:
        self.value = value
        super().__init__(f"Transformed error: {value!r}")
