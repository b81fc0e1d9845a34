"""Async driver contract consumed by the execution facade."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, ClassVar

from sqlglot import exp

from sqlbind._serialization import encode_json
from sqlbind.driver.result import QueryResult
from sqlbind.exceptions import DriverErrorInfo
from sqlbind.parameters.types import ParameterStyle

__all__ = ("AsyncDriverAdapterBase",)


class AsyncDriverAdapterBase(ABC):
    """Base class for database drivers.

    A driver owns the connection pool, executes finished SQL with positional
    values and supplies the quoting primitives used for format tokens.
    """

    dialect: ClassVar[str] = "postgres"
    parameter_style: ClassVar[ParameterStyle] = ParameterStyle.NUMERIC

    @abstractmethod
    async def execute(self, sql: str, values: "tuple[Any, ...]", *, connection: Any = None) -> QueryResult:
        """Run ``sql`` with ``values`` on ``connection`` (or a pooled one)."""

    @abstractmethod
    def transaction(self) -> "AbstractAsyncContextManager[Any]":
        """Yield a connection with an open transaction.

        The transaction commits when the block exits normally and rolls back
        when it raises.
        """

    async def close(self) -> None:
        """Release pooled resources."""
        return

    def quote_literal(self, value: Any) -> str:
        """Render ``value`` as a SQL literal safe for inline use.

        Bytes become ``bytea`` hex literals and mappings become ``jsonb``.
        """
        if isinstance(value, (bytes, bytearray, memoryview)):
            return f"'\\x{bytes(value).hex()}'::bytea"
        if isinstance(value, Mapping):
            return f"{exp.convert(encode_json(value)).sql(dialect=self.dialect)}::jsonb"
        return exp.convert(value).sql(dialect=self.dialect)

    def quote_identifier(self, value: Any) -> str:
        """Render ``value`` as a quoted SQL identifier."""
        return exp.to_identifier(str(value), quoted=True).sql(dialect=self.dialect)

    def describe_error(self, error: BaseException) -> DriverErrorInfo:
        """Extract code and message from a driver exception."""
        code = getattr(error, "sqlstate", None) or getattr(error, "code", None)
        return DriverErrorInfo(
            code=str(code) if code is not None else None,
            message=str(error) or type(error).__name__,
            detail=getattr(error, "detail", None),
            hint=getattr(error, "hint", None),
            original=error,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(dialect={self.dialect!r})"
