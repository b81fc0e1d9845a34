from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import pytest

from sqlbind.driver import AsyncDriverAdapterBase, QueryResult

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

here = Path(__file__).parent
sql_root = here / "fixtures" / "sql"


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def sql_dir() -> Path:
    return sql_root


class FakePostgresError(Exception):
    """Driver-style error exposing a SQLSTATE like asyncpg does."""

    def __init__(self, message: str, sqlstate: str) -> None:
        super().__init__(message)
        self.sqlstate = sqlstate


class RecordingDriver(AsyncDriverAdapterBase):
    """In-memory driver that records every dispatch."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, error: BaseException | None = None) -> None:
        self.rows = rows if rows is not None else []
        self.error = error
        self.calls: list[tuple[str, tuple[Any, ...], Any]] = []
        self.transactions: list[str] = []
        self.closed = False

    async def execute(self, sql: str, values: tuple[Any, ...], *, connection: Any = None) -> QueryResult:
        self.calls.append((sql, values, connection))
        if self.error is not None:
            raise self.error
        return QueryResult(rows=list(self.rows), row_count=len(self.rows), command="SELECT")

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Any, None]:
        self.transactions.append("begin")
        try:
            yield "connection-1"
        except BaseException:
            self.transactions.append("rollback")
            raise
        else:
            self.transactions.append("commit")

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def driver() -> RecordingDriver:
    return RecordingDriver(rows=[{"id": 1, "text": "a"}])
