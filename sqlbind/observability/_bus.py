"""Per-facade listener registry for execution events."""

from collections.abc import Callable
from typing import Any, Optional

from sqlbind.utils.logging import get_logger

__all__ = ("EventBus", "EventHandler")

logger = get_logger("observability.bus")

EventHandler = Callable[[Any], Any]


class EventBus:
    """Subscription registry owned by a single facade.

    Each bus holds its own listeners and has no reference to any other bus,
    so events emitted on one are never seen by another. Handlers run
    synchronously in registration order; exceptions raised by a handler
    propagate to the code that emitted the event.
    """

    __slots__ = ("_disposed", "_listeners")

    def __init__(self) -> None:
        self._listeners: dict[str, list[EventHandler]] = {}
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on(self, event: str, handler: EventHandler) -> EventHandler:
        """Register ``handler`` for ``event`` and return it.

        Registering on a disposed bus is a no-op.
        """
        if self._disposed:
            logger.debug("Ignoring listener for %r on disposed bus", event)
            return handler
        self._listeners.setdefault(event, []).append(handler)
        return handler

    def once(self, event: str, handler: EventHandler) -> EventHandler:
        """Register ``handler`` to run for the next ``event`` only."""

        def _once(payload: Any) -> Any:
            self.off(event, _once)
            return handler(payload)

        return self.on(event, _once)

    def off(self, event: str, handler: EventHandler) -> bool:
        """Remove the first registration of ``handler`` for ``event``."""
        handlers = self._listeners.get(event)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        if not handlers:
            del self._listeners[event]
        return True

    def emit(self, event: str, payload: Any) -> bool:
        """Call every handler registered for ``event`` with ``payload``.

        Returns:
            ``True`` if at least one handler ran.
        """
        if self._disposed:
            return False
        handlers = self._listeners.get(event)
        if not handlers:
            return False
        for handler in tuple(handlers):
            handler(payload)
        return True

    def listener_count(self, event: "Optional[str]" = None) -> int:
        if event is None:
            return sum(len(handlers) for handlers in self._listeners.values())
        return len(self._listeners.get(event, ()))

    def remove_all_listeners(self, event: "Optional[str]" = None) -> None:
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(event, None)

    def dispose(self) -> None:
        """Detach every listener and make further emits no-ops. Idempotent."""
        self._listeners.clear()
        self._disposed = True

    def __repr__(self) -> str:
        state = "disposed" if self._disposed else f"listeners={self.listener_count()}"
        return f"{type(self).__name__}({state})"
