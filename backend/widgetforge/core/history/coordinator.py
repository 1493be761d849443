"""Undo/redo over whole-document snapshots, across document switches.

The stack is linear with a cursor (``-1`` when empty). Every snapshot carries
the identity of the document it was taken from (its id, or its draft key while
unsaved), so loading another document appends
to the same timeline instead of resetting it, and undo can walk back into the
previous document. Callers learn about such a crossing through
``HistoryStep.document_switched``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from widgetforge.core.store.models import Document
from widgetforge.core.tree.node import ComponentNode

from .coalescing import CoalescingRecorder, Scheduler, thread_timer

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 50
DEFAULT_COALESCE_WINDOW = 0.5


class HistorySnapshot(BaseModel):
    """Structurally independent copy of a document's editable state."""

    document_id: Optional[str] = None
    draft_key: Optional[str] = None
    name: str
    root: List[ComponentNode] = Field(default_factory=list)

    @classmethod
    def from_document(cls, document: Document) -> "HistorySnapshot":
        return cls(
            document_id=document.id,
            draft_key=document.draft_key,
            name=document.name,
            root=[node.model_copy(deep=True) for node in document.root],
        )

    @property
    def identity(self) -> Tuple[str, Optional[str]]:
        return document_identity(self.document_id, self.draft_key)

    def same_state(self, other: "HistorySnapshot") -> bool:
        if self.identity != other.identity or self.name != other.name:
            return False
        return [node.model_dump() for node in self.root] == [node.model_dump() for node in other.root]


def document_identity(document_id: Optional[str], draft_key: Optional[str] = None) -> Tuple[str, Optional[str]]:
    """Saved documents are identified by id, unsaved ones by their draft key."""

    if document_id is not None:
        return ("document", document_id)
    return ("draft", draft_key)


@dataclass(frozen=True)
class HistoryStep:
    snapshot: HistorySnapshot
    document_switched: bool
    cursor: int


class HistoryCoordinator:
    """Bounded, truncate-on-branch undo/redo stack."""

    def __init__(
        self,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        coalesce_window: float = DEFAULT_COALESCE_WINDOW,
        scheduler: Scheduler = thread_timer,
        on_change: Optional[Callable[[], None]] = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._coalesce_window = coalesce_window
        self._scheduler = scheduler
        self._on_change = on_change
        self._lock = RLock()
        self._stack: List[HistorySnapshot] = []
        self._cursor = -1
        self._replay_pending = False
        self._coalescers: Dict[str, CoalescingRecorder] = {}
        self._providers: Dict[str, Callable[[], Document]] = {}

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def size(self) -> int:
        return len(self._stack)

    @property
    def max_entries(self) -> int:
        return self._max_entries

    @property
    def can_undo(self) -> bool:
        return self._cursor > 0

    @property
    def can_redo(self) -> bool:
        return self._cursor < len(self._stack) - 1

    @property
    def is_coalescing(self) -> bool:
        return any(recorder.active for recorder in self._coalescers.values())

    def entries(self) -> List[HistorySnapshot]:
        with self._lock:
            return [entry.model_copy(deep=True) for entry in self._stack]

    def current(self) -> Optional[HistorySnapshot]:
        with self._lock:
            if self._cursor < 0:
                return None
            return self._stack[self._cursor].model_copy(deep=True)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def mark_replay(self) -> None:
        """Skip the next :meth:`record`; the state came from history or a save."""

        with self._lock:
            self._replay_pending = True

    def record(self, document: Document) -> bool:
        """Push a snapshot of ``document``. Returns ``False`` when skipped."""

        with self._lock:
            if self._replay_pending:
                self._replay_pending = False
                return False
            if self.is_coalescing:
                return False
            changed = self._push(HistorySnapshot.from_document(document))
        if changed:
            self._notify()
        return changed

    def record_load(self, document: Document) -> bool:
        """Record a freshly loaded document.

        Reloading the document that already sits under the cursor replaces that
        entry; any other document is appended so undo can return across the
        switch.
        """

        snapshot = HistorySnapshot.from_document(document)
        with self._lock:
            self._replay_pending = False
            current = self._stack[self._cursor] if self._cursor >= 0 else None
            if current is not None and current.document_id is not None and current.identity == snapshot.identity:
                if current.same_state(snapshot):
                    return False
                self._stack[self._cursor] = snapshot
                del self._stack[self._cursor + 1:]
                changed = True
            else:
                changed = self._push(snapshot)
        if changed:
            logger.debug("history_load document_id=%s cursor=%d", snapshot.document_id, self._cursor)
            self._notify()
        return changed

    def adopt_document_id(self, document_id: str, draft_key: Optional[str] = None) -> int:
        """Tag the entries of the draft ``draft_key`` with its newly assigned id.

        Without this, undoing past a document's first save would look like a
        switch to a different (unsaved) document. Entries of other drafts keep
        their own identity.
        """

        adopted = 0
        with self._lock:
            for index, entry in enumerate(self._stack):
                if entry.document_id is None and entry.draft_key == draft_key:
                    self._stack[index] = entry.model_copy(update={"document_id": document_id})
                    adopted += 1
        return adopted

    def clear(self) -> None:
        for recorder in self._coalescers.values():
            recorder.cancel()
        with self._lock:
            self._stack.clear()
            self._cursor = -1
            self._replay_pending = False
        self._notify()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    def undo(
        self,
        active_document_id: Optional[str] = None,
        active_draft_key: Optional[str] = None,
    ) -> Optional[HistoryStep]:
        """Step back one entry; ``None`` means there is nothing to undo."""

        with self._lock:
            if self._cursor <= 0:
                return None
            self._cursor -= 1
            step = self._step(document_identity(active_document_id, active_draft_key))
        self._notify()
        return step

    def redo(
        self,
        active_document_id: Optional[str] = None,
        active_draft_key: Optional[str] = None,
    ) -> Optional[HistoryStep]:
        """Step forward one entry; ``None`` means there is nothing to redo."""

        with self._lock:
            if self._cursor >= len(self._stack) - 1:
                return None
            self._cursor += 1
            step = self._step(document_identity(active_document_id, active_draft_key))
        self._notify()
        return step

    # ------------------------------------------------------------------
    # Coalesced field edits
    # ------------------------------------------------------------------
    def touch(self, field: str, provider: Callable[[], Document]) -> None:
        """Open (or extend) the quiet window for ``field``.

        While any window is open :meth:`record` is suppressed. When it closes,
        the document returned by ``provider`` is committed as one entry.
        """

        self._providers[field] = provider
        recorder = self._coalescers.get(field)
        if recorder is None:
            recorder = CoalescingRecorder(
                lambda: self._commit_coalesced(field),
                self._coalesce_window,
                self._scheduler,
            )
            self._coalescers[field] = recorder
        recorder.touch()

    def flush(self, field: Optional[str] = None) -> bool:
        """Commit pending windows now; returns whether anything was pending."""

        if field is not None:
            recorder = self._coalescers.get(field)
            return recorder.flush() if recorder is not None else False
        flushed = False
        for recorder in list(self._coalescers.values()):
            flushed = recorder.flush() or flushed
        return flushed

    def _commit_coalesced(self, field: str) -> None:
        provider = self._providers.get(field)
        if provider is None:
            return
        document = provider()
        with self._lock:
            changed = self._push(HistorySnapshot.from_document(document))
        logger.debug("history_coalesced field=%s recorded=%s", field, changed)
        if changed:
            self._notify()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _push(self, snapshot: HistorySnapshot) -> bool:
        if self._cursor >= 0 and self._stack[self._cursor].same_state(snapshot):
            return False
        del self._stack[self._cursor + 1:]
        self._stack.append(snapshot)
        overflow = len(self._stack) - self._max_entries
        if overflow > 0:
            del self._stack[:overflow]
        self._cursor = len(self._stack) - 1
        return True

    def _step(self, active_identity: Tuple[str, Optional[str]]) -> HistoryStep:
        snapshot = self._stack[self._cursor].model_copy(deep=True)
        return HistoryStep(
            snapshot=snapshot,
            document_switched=snapshot.identity != active_identity,
            cursor=self._cursor,
        )

    def _notify(self) -> None:
        if self._on_change is not None:
            self._on_change()
