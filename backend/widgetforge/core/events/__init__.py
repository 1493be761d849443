from .event_bus import (
    DocumentChanged,
    DocumentSwitched,
    Event,
    EventBus,
    HistoryChanged,
    Notification,
    StoreUpdated,
)

__all__ = [
    "DocumentChanged",
    "DocumentSwitched",
    "Event",
    "EventBus",
    "HistoryChanged",
    "Notification",
    "StoreUpdated",
]
