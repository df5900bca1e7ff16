"""Domain bus interfaces for in-process event handling."""

from __future__ import annotations

from typing import Any, Dict, Protocol


class IEventHandler(Protocol):
    """Handler for a stored domain event.

    Handlers receive the event *payload* (as written to the outbox),
    not the original dataclass, so they work for replayed events too.
    """

    def handle(self, event_name: str, payload: Dict[str, Any]) -> None: ...


class IEventBus(Protocol):
    """Event bus interface."""

    def publish(self, event_name: str, payload: Dict[str, Any]) -> int: ...

    def subscribe(self, event_name: str, handler: IEventHandler) -> None: ...
