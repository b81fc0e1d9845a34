"""sqlbind: named SQL templates bound to positional driver parameters."""

from sqlbind import adapters, base, driver, exceptions, loader, observability, parameters, statement, utils
from sqlbind.__metadata__ import __version__
from sqlbind.base import IsolatedSQLBind, SQLBind
from sqlbind.driver import AsyncDriverAdapterBase, QueryResult
from sqlbind.exceptions import (
    DriverErrorInfo,
    DriverExecutionError,
    MissingParameterError,
    QueryContext,
    SQLBindError,
    StatementNotFoundError,
    TransformedError,
)
from sqlbind.loader import SQLFileLoader
from sqlbind.observability import EventBus, ObservabilityConfig, QueryEvent, ResultEvent
from sqlbind.parameters import ParameterBinder, ParameterStyle, extract_references, resolve_formats
from sqlbind.statement import FormattableStatement, QueryState

__all__ = (
    "AsyncDriverAdapterBase",
    "DriverErrorInfo",
    "DriverExecutionError",
    "EventBus",
    "FormattableStatement",
    "IsolatedSQLBind",
    "MissingParameterError",
    "ObservabilityConfig",
    "ParameterBinder",
    "ParameterStyle",
    "QueryContext",
    "QueryEvent",
    "QueryResult",
    "QueryState",
    "ResultEvent",
    "SQLBind",
    "SQLBindError",
    "SQLFileLoader",
    "StatementNotFoundError",
    "TransformedError",
    "__version__",
    "adapters",
    "base",
    "driver",
    "exceptions",
    "extract_references",
    "loader",
    "observability",
    "parameters",
    "resolve_formats",
    "statement",
    "utils",
)
