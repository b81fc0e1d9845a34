"""Public observability exports."""

from sqlbind.observability._bus import EventBus, EventHandler
from sqlbind.observability._config import ObservabilityConfig, StatementObserver
from sqlbind.observability._events import QUERY_EVENT, RESULT_EVENT, QueryEvent, ResultEvent
from sqlbind.observability._observer import default_statement_observer, format_result_event

__all__ = (
    "QUERY_EVENT",
    "RESULT_EVENT",
    "EventBus",
    "EventHandler",
    "ObservabilityConfig",
    "QueryEvent",
    "ResultEvent",
    "StatementObserver",
    "default_statement_observer",
    "format_result_event",
)
