from .coalescing import Cancellable, CoalescingRecorder, Scheduler, thread_timer
from .coordinator import (
    DEFAULT_COALESCE_WINDOW,
    DEFAULT_MAX_ENTRIES,
    HistoryCoordinator,
    HistorySnapshot,
    HistoryStep,
    document_identity,
)

__all__ = [
    "Cancellable",
    "CoalescingRecorder",
    "DEFAULT_COALESCE_WINDOW",
    "DEFAULT_MAX_ENTRIES",
    "HistoryCoordinator",
    "HistorySnapshot",
    "HistoryStep",
    "document_identity",
    "Scheduler",
    "thread_timer",
]
