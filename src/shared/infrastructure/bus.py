"""In-memory event bus implementation."""

from __future__ import annotations

from typing import Any, Dict, List

from shared.domain.bus import IEventBus, IEventHandler


class InMemoryEventBus(IEventBus):
    """Simple in-process event bus keyed by event name."""

    def __init__(self) -> None:
        self._handlers: Dict[str, List[IEventHandler]] = {}

    def subscribe(self, event_name: str, handler: IEventHandler) -> None:
        handlers = self._handlers.setdefault(event_name, [])
        if handler not in handlers:
            handlers.append(handler)

    def publish(self, event_name: str, payload: Dict[str, Any]) -> int:
        """Dispatch to every subscribed handler; return how many ran."""
        handlers = self._handlers.get(event_name, [])
        for handler in handlers:
            handler.handle(event_name, payload)
        return len(handlers)

    def clear(self) -> None:
        self._handlers.clear()


# Global bus instance (singleton)

event_bus = InMemoryEventBus()
