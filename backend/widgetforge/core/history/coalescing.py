"""Deferred commits for high-frequency edits.

A burst of touches (one per keystroke while renaming, say) arms a single-shot
timer that is cancelled and re-armed on every touch. The commit callback runs
once, after the burst has been quiet for ``window`` seconds.
"""

from __future__ import annotations

from threading import Lock, Timer
from typing import Callable, Optional, Protocol


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def thread_timer(delay: float, callback: Callable[[], None]) -> Cancellable:
    timer = Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class CoalescingRecorder:
    """Buffers rapid-fire touches and commits once after a quiet period."""

    def __init__(
        self,
        commit: Callable[[], None],
        window: float,
        scheduler: Scheduler = thread_timer,
    ) -> None:
        if window < 0:
            raise ValueError("window must be non-negative")
        self._commit = commit
        self._window = window
        self._scheduler = scheduler
        self._lock = Lock()
        self._pending: Optional[Cancellable] = None
        self._generation = 0

    @property
    def active(self) -> bool:
        return self._pending is not None

    @property
    def window(self) -> float:
        return self._window

    def touch(self) -> None:
        """Start the window, or restart it if one is already running."""

        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._generation += 1
            generation = self._generation
            self._pending = self._scheduler(self._window, lambda: self._fire(generation))

    def flush(self) -> bool:
        """Commit a pending window right away. Returns ``False`` when idle."""

        with self._lock:
            if self._pending is None:
                return False
            self._pending.cancel()
            self._pending = None
            self._generation += 1
        self._commit()
        return True

    def cancel(self) -> bool:
        """Drop a pending window without committing."""

        with self._lock:
            if self._pending is None:
                return False
            self._pending.cancel()
            self._pending = None
            self._generation += 1
        return True

    def _fire(self, generation: int) -> None:
        with self._lock:
            # a stale timer may still fire after being cancelled
            if generation != self._generation or self._pending is None:
                return
            self._pending = None
        self._commit()
