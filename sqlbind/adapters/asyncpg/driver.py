# pyright: reportCallIssue=false, reportAttributeAccessIssue=false, reportArgumentType=false
import re
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Final, Optional

import asyncpg

from sqlbind.driver import AsyncDriverAdapterBase, QueryResult
from sqlbind.exceptions import DriverErrorInfo
from sqlbind.parameters.types import ParameterStyle
from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from sqlbind.adapters.asyncpg._types import AsyncpgConnection
    from sqlbind.adapters.asyncpg.config import AsyncpgConfig

__all__ = ("AsyncpgDriver",)

logger = get_logger("adapters.asyncpg")


ASYNC_PG_STATUS_REGEX: Final[re.Pattern[str]] = re.compile(r"^([A-Z]+)(?:\s+(\d+))?\s+(\d+)$", re.IGNORECASE)


class AsyncpgDriver(AsyncDriverAdapterBase):
    """AsyncPG PostgreSQL driver."""

    dialect = "postgres"
    parameter_style = ParameterStyle.NUMERIC

    def __init__(self, config: "AsyncpgConfig") -> None:
        self.config = config

    async def execute(
        self, sql: str, values: "tuple[Any, ...]", *, connection: "Optional[AsyncpgConnection]" = None
    ) -> QueryResult:
        if connection is not None:
            return await self._execute_statement(connection, sql, values)
        async with self.config.provide_connection() as pooled:
            return await self._execute_statement(pooled, sql, values)

    async def _execute_statement(
        self, connection: "AsyncpgConnection", sql: str, values: "tuple[Any, ...]"
    ) -> QueryResult:
        """Prepare and run one statement, reading rows and the command status."""
        statement = await connection.prepare(sql)
        records = await statement.fetch(*values)
        rows = [dict(record) for record in records]
        command, row_count = self._parse_asyncpg_status(statement.get_statusmsg(), len(rows))
        return QueryResult(
            rows=rows,
            row_count=row_count,
            command=command,
            columns=[attribute.name for attribute in statement.get_attributes()],
        )

    @staticmethod
    def _parse_asyncpg_status(status: "Optional[str]", fallback: int) -> "tuple[Optional[str], int]":
        """Parse AsyncPG status string to extract command and row count.

        Args:
            status: Status string like "INSERT 0 1", "UPDATE 3", "SELECT 2"
            fallback: Row count used when the status carries none

        Returns:
            Command tag (or None) and number of affected rows
        """
        if not status:
            return None, fallback

        match = ASYNC_PG_STATUS_REGEX.match(status.strip())
        if match:
            return match.group(1).upper(), int(match.group(3))

        return status.strip().upper(), fallback

    @asynccontextmanager
    async def transaction(self) -> "AsyncGenerator[AsyncpgConnection, None]":
        async with self.config.provide_connection() as connection, connection.transaction():
            yield connection

    async def close(self) -> None:
        await self.config.close_pool()

    def describe_error(self, error: BaseException) -> DriverErrorInfo:
        if isinstance(error, asyncpg.PostgresError):
            return DriverErrorInfo(
                code=error.sqlstate,
                message=getattr(error, "message", None) or str(error),
                detail=getattr(error, "detail", None),
                hint=getattr(error, "hint", None),
                original=error,
            )
        return super().describe_error(error)
