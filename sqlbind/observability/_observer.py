"""Logging observer for execution events."""

from sqlbind.observability._events import ResultEvent
from sqlbind.utils.logging import get_logger

__all__ = ("default_statement_observer", "format_result_event")


logger = get_logger("sqlbind.observability")


def format_result_event(event: ResultEvent) -> str:
    """Create a concise human-readable representation of a result event."""

    status = "ok" if event.succeeded else f"failed: {event.error}"
    rows_label = "rows=%s" % (event.row_count if event.row_count is not None else "unknown")
    return (
        f"[{event.name}] {status} ({rows_label}, duration={event.duration_s:.6f}s)\n"
        f"SQL: {event.sql}\nValues: {event.values}"
    )


def default_statement_observer(event: ResultEvent) -> None:
    """Log a result event; used when ``print_sql`` is enabled."""

    logger.info(
        format_result_event(event),
        extra={
            "extra_fields": {
                "statement": event.name,
                "duration_s": event.duration_s,
                "row_count": event.row_count,
                "succeeded": event.succeeded,
            }
        },
    )
