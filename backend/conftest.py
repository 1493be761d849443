from __future__ import annotations

from typing import Callable, List

import pytest

from widgetforge.core.events import EventBus, Notification
from widgetforge.core.store import DocumentStore, MemoryStorage
from widgetforge.core.tree import ComponentNode


class ManualTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Stands in for threading.Timer so tests decide when a window elapses."""

    def __init__(self) -> None:
        self.timers: List[ManualTimer] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> ManualTimer:
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> List[ManualTimer]:
        return [timer for timer in self.timers if not timer.cancelled and not timer.fired]

    def fire_all(self) -> None:
        for timer in self.pending:
            timer.fired = True
            timer.callback()


def node(node_id: str, kind: str = "Label", children=None, **properties) -> ComponentNode:
    return ComponentNode(id=node_id, kind=kind, properties=properties, children=list(children or []))


@pytest.fixture()
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def bus() -> EventBus:
    return EventBus()


@pytest.fixture()
def notifications(bus: EventBus) -> List[Notification]:
    received: List[Notification] = []
    bus.subscribe(Notification, received.append)
    return received


@pytest.fixture()
def store(bus: EventBus) -> DocumentStore:
    return DocumentStore(MemoryStorage(), bus=bus)
