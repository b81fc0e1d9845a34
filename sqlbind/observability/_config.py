"""Observers a facade subscribes to its ``result`` events."""

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from sqlbind.observability._events import ResultEvent

__all__ = ("ObservabilityConfig", "StatementObserver")

StatementObserver = Callable[["ResultEvent"], None]


class ObservabilityConfig:
    """Result observers attached when a facade is constructed.

    Args:
        print_sql: Log every result event through the ``sqlbind.observability`` logger.
        statement_observers: Extra callables invoked with each :class:`ResultEvent`.
    """

    __slots__ = ("print_sql", "statement_observers")

    def __init__(
        self, print_sql: bool = False, statement_observers: "Optional[Iterable[StatementObserver]]" = None
    ) -> None:
        self.print_sql = print_sql
        self.statement_observers: tuple[StatementObserver, ...] = tuple(statement_observers or ())

    def iter_observers(self) -> "tuple[StatementObserver, ...]":
        """Observers to subscribe, with the logging observer first when ``print_sql`` is set."""
        from sqlbind.observability._observer import default_statement_observer

        if self.print_sql:
            return (default_statement_observer, *self.statement_observers)
        return self.statement_observers

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(print_sql={self.print_sql!r}, "
            f"statement_observers={len(self.statement_observers)})"
        )
