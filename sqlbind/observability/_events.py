"""Event payloads emitted around each execution."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final, Optional

if TYPE_CHECKING:
    from sqlbind.exceptions import SQLBindError

__all__ = ("QUERY_EVENT", "RESULT_EVENT", "QueryEvent", "ResultEvent")

QUERY_EVENT: Final = "query"
RESULT_EVENT: Final = "result"


@dataclass(frozen=True, slots=True)
class QueryEvent:
    """Emitted immediately before the statement is dispatched to the driver."""

    name: str
    sql: str
    values: "tuple[Any, ...]"
    started_at: float
    """Wall clock time (``time.time()``) when dispatch began."""
    start: float
    """High resolution start (``time.perf_counter()``)."""

    def as_dict(self) -> "dict[str, Any]":
        return {
            "name": self.name,
            "sql": self.sql,
            "values": self.values,
            "started_at": self.started_at,
            "start": self.start,
        }


@dataclass(frozen=True, slots=True)
class ResultEvent:
    """Emitted once the driver has answered, whether it succeeded or not."""

    name: str
    sql: str
    values: "tuple[Any, ...]"
    started_at: float
    start: float
    end: float
    duration_s: float
    row_count: "Optional[int]" = None
    error: "Optional[SQLBindError]" = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def as_dict(self) -> "dict[str, Any]":
        return {
            "name": self.name,
            "sql": self.sql,
            "values": self.values,
            "started_at": self.started_at,
            "start": self.start,
            "end": self.end,
            "duration_s": self.duration_s,
            "row_count": self.row_count,
            "error": self.error,
        }
