"""Per-call execution state and the immutable format builder."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Final, Optional

from sqlbind.utils.logging import get_logger

if TYPE_CHECKING:
    from sqlbind.base import SQLBind
    from sqlbind.driver import QueryResult

__all__ = ("FormattableStatement", "InvalidTransitionError", "QueryExecution", "QueryState")

logger = get_logger("statement")


class QueryState(str, Enum):
    """Lifecycle of a single execution."""

    PENDING = "pending"
    FORMATTING = "formatting"
    BINDING = "binding"
    DISPATCHED = "dispatched"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return self in {QueryState.SUCCEEDED, QueryState.FAILED}


_TRANSITIONS: Final[dict[QueryState, frozenset[QueryState]]] = {
    QueryState.PENDING: frozenset({QueryState.FORMATTING, QueryState.BINDING, QueryState.FAILED}),
    QueryState.FORMATTING: frozenset({QueryState.BINDING, QueryState.FAILED}),
    QueryState.BINDING: frozenset({QueryState.DISPATCHED, QueryState.FAILED}),
    QueryState.DISPATCHED: frozenset({QueryState.SUCCEEDED, QueryState.FAILED}),
    QueryState.SUCCEEDED: frozenset(),
    QueryState.FAILED: frozenset(),
}


class InvalidTransitionError(RuntimeError):
    """Raised on an impossible state change; indicates a bug in the facade."""


class QueryExecution:
    """Tracks the state of one call. Created per call and never shared."""

    __slots__ = ("name", "state")

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = QueryState.PENDING

    def transition(self, new_state: QueryState) -> None:
        if new_state not in _TRANSITIONS[self.state]:
            msg = f"Cannot move {self.name!r} from {self.state} to {new_state}"
            raise InvalidTransitionError(msg)
        logger.debug("%s: %s -> %s", self.name, self.state, new_state)
        self.state = new_state

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.state!s})"


@dataclass(frozen=True)
class FormattableStatement:
    """Builder collecting format values for a registered statement.

    Every :meth:`format` call returns a new builder, so a partially formatted
    builder can be shared and extended independently::

        base = db.formattable("reports.by_table").format("orders")
        rows = await base.format("created_at").query({"since": since})
    """

    facade: "SQLBind" = field(repr=False)
    name: str
    format_values: "tuple[Any, ...]" = ()

    def format(self, *values: Any) -> "FormattableStatement":
        """Append ``values`` to the queue of format values."""
        return replace(self, format_values=self.format_values + values)

    async def query(self, params: "Optional[Any]" = None) -> "QueryResult":
        """Resolve the format values, bind ``params`` and execute."""
        return await self.facade.execute(self.name, params, format_values=self.format_values)
