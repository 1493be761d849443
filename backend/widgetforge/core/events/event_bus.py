"""Typed publish/subscribe channel shared by the store and editor sessions.

An instance is handed to every collaborator that needs it; nothing reaches a
module-level bus.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import count
from typing import Callable, Dict, List, Optional, Tuple, Type, TypeVar


@dataclass(frozen=True)
class Event:
    """Base class for everything published on the bus."""


@dataclass(frozen=True)
class StoreUpdated(Event):
    action: str
    document_id: Optional[str] = None


@dataclass(frozen=True)
class Notification(Event):
    message: str
    severity: str = "info"


@dataclass(frozen=True)
class HistoryChanged(Event):
    can_undo: bool
    can_redo: bool
    size: int = 0


@dataclass(frozen=True)
class DocumentSwitched(Event):
    previous_id: Optional[str]
    current_id: Optional[str]
    reason: str = "load"


@dataclass(frozen=True)
class DocumentChanged(Event):
    document_id: Optional[str]
    intent: str
    details: Dict[str, object] = field(default_factory=dict)


E = TypeVar("E", bound=Event)
EventCallback = Callable[[E], None]


class EventBus:
    """Dispatches events to callbacks registered for their type (or a base type)."""

    def __init__(self) -> None:
        self._registry: Dict[Type[Event], Dict[int, Callable[[Event], None]]] = {}
        self._ids = count(1)

    # ------------------------------------------------------------------
    # Registration lifecycle
    # ------------------------------------------------------------------
    def subscribe(self, event_type: Type[E], callback: Callable[[E], None]) -> int:
        """Register ``callback`` and return a token for :meth:`unsubscribe`."""

        if not (isinstance(event_type, type) and issubclass(event_type, Event)):
            raise ValueError(f"Unsupported event type: {event_type!r}")
        token = next(self._ids)
        self._registry.setdefault(event_type, {})[token] = callback  # type: ignore[assignment]
        return token

    def unsubscribe(self, token: int) -> bool:
        for event_type, callbacks in list(self._registry.items()):
            if token in callbacks:
                callbacks.pop(token)
                if not callbacks:
                    self._registry.pop(event_type, None)
                return True
        return False

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def publish(self, event: Event) -> int:
        """Deliver ``event`` and return how many callbacks received it."""

        delivered = 0
        for callback in self._callbacks_for(type(event)):
            callback(event)
            delivered += 1
        return delivered

    def _callbacks_for(self, event_type: Type[Event]) -> List[Callable[[Event], None]]:
        ordered: List[Tuple[int, Callable[[Event], None]]] = []
        for registered_type, callbacks in self._registry.items():
            if issubclass(event_type, registered_type):
                ordered.extend(callbacks.items())
        ordered.sort(key=lambda item: item[0])
        return [callback for _, callback in ordered]
