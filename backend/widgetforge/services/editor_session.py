"""Editing session: sequences tree edits, history and persistence per user intent.

The session owns the working document. Tree operations produce a new root,
the history coordinator snapshots it, and explicit saves hand it to the
document store. Store failures come back as ``SessionOutcome`` values and
``Notification`` events rather than exceptions.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar, Union
from uuid import uuid4

from widgetforge.core import tree
from widgetforge.core.catalog import ComponentCatalog, clone_template
from widgetforge.core.errors import DuplicateNodeError, NotFoundError, ValidationError, WidgetForgeError
from widgetforge.core.events import (
    DocumentChanged,
    DocumentSwitched,
    EventBus,
    HistoryChanged,
    Notification,
)
from widgetforge.core.history import (
    DEFAULT_COALESCE_WINDOW,
    DEFAULT_MAX_ENTRIES,
    HistoryCoordinator,
    HistoryStep,
    Scheduler,
    thread_timer,
)
from widgetforge.core.store import PLACEHOLDER_NAME, Document, DocumentStore, VersionLedgerEntry
from widgetforge.core.store.models import INITIAL_VERSION
from widgetforge.core.tree import ComponentNode

logger = logging.getLogger(__name__)

NAME_FIELD = "name"

F = TypeVar("F", bound=Callable[..., Any])


def new_draft_key() -> str:
    return f"draft-{uuid4().hex}"


def serialized(method: F) -> F:
    """Run the wrapped intent while holding the session lock."""

    @functools.wraps(method)
    def wrapper(self: "EditorSession", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


@dataclass
class SessionOutcome:
    """Result of one editing intent, ready to be shown to the user."""

    ok: bool
    message: str = ""
    severity: str = "success"
    changed: bool = False
    error: Optional[WidgetForgeError] = None
    document: Optional[Document] = None

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error is not None else None


class EditorSession:
    """One editor instance working on one document at a time."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        bus: Optional[EventBus] = None,
        catalog: Optional[ComponentCatalog] = None,
        history: Optional[HistoryCoordinator] = None,
        confirm_delete: Optional[Callable[[str], bool]] = None,
        history_limit: int = DEFAULT_MAX_ENTRIES,
        rename_window: float = DEFAULT_COALESCE_WINDOW,
        scheduler: Scheduler = thread_timer,
    ) -> None:
        self._store = store
        self._bus = bus or EventBus()
        self._catalog = catalog or ComponentCatalog()
        self._history = history or HistoryCoordinator(
            max_entries=history_limit,
            coalesce_window=rename_window,
            scheduler=scheduler,
            on_change=self._publish_history,
        )
        self._confirm_delete = confirm_delete
        self._lock = RLock()
        self._document = Document(draft_key=new_draft_key())
        self._history.record_load(self._document)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------
    @property
    def document(self) -> Document:
        return self._document.clone()

    @property
    def bus(self) -> EventBus:
        return self._bus

    @property
    def catalog(self) -> ComponentCatalog:
        return self._catalog

    @property
    def history(self) -> HistoryCoordinator:
        return self._history

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    # ------------------------------------------------------------------
    # Structural intents
    # ------------------------------------------------------------------
    @serialized
    def add_node(
        self,
        kind: str,
        container_id: Optional[str] = None,
        properties: Optional[Dict[str, Any]] = None,
    ) -> SessionOutcome:
        """Add a node seeded from the catalog, at the root or inside a container."""

        try:
            node = self._catalog.create_node(kind, properties)
            if container_id is None:
                root = tree.append(node, self._document.root)
            else:
                container = tree.find(container_id, self._document.root)
                if container is None:
                    raise NotFoundError(f"Container {container_id} not found")
                if not self._catalog.is_container(container.kind):
                    raise ValidationError(f"{container.kind} cannot hold child components", code="not_a_container")
                root = tree.insert_into(container_id, node, self._document.root)
        except WidgetForgeError as exc:
            return self._fail(exc)

        entry = self._catalog.get(kind)
        label = entry.label if entry is not None else kind
        if container_id is None:
            message = f"Added {label} component"
        else:
            message = f"Added {label} to {container.kind}"
        return self._apply_edit(root, "add_node", message, node_id=node.id)

    def drop_node(self, kind: str, container_id: str) -> SessionOutcome:
        """Drop a palette item onto a container."""

        return self.add_node(kind, container_id=container_id)

    @serialized
    def update_node(self, node: ComponentNode) -> SessionOutcome:
        if tree.find(node.id, self._document.root) is None:
            return SessionOutcome(ok=True)
        root = tree.update(node.id, node.model_copy(deep=True), self._document.root)
        try:
            tree.ensure_unique_ids(root)
        except DuplicateNodeError as exc:
            return self._fail(exc)
        return self._apply_edit(root, "update_node", "Component updated", node_id=node.id)

    @serialized
    def set_properties(self, node_id: str, properties: Dict[str, Any]) -> SessionOutcome:
        current = tree.find(node_id, self._document.root)
        if current is None:
            return SessionOutcome(ok=True)
        merged = {**current.properties, **properties}
        return self.update_node(current.model_copy(update={"properties": merged}))

    @serialized
    def delete_node(self, node_id: str, *, confirmed: bool = False) -> SessionOutcome:
        if tree.find(node_id, self._document.root) is None:
            return SessionOutcome(ok=True)
        if self._confirm_delete is not None and not confirmed and not self._confirm_delete(node_id):
            return SessionOutcome(ok=False, message="Delete cancelled", severity="info", document=self.document)
        root = tree.remove(node_id, self._document.root)
        return self._apply_edit(root, "delete_node", "Component deleted", severity="info", node_id=node_id)

    @serialized
    def move_node(self, node_id: str, direction: str) -> SessionOutcome:
        if direction not in ("up", "down"):
            return self._fail(ValidationError(f"Unsupported move direction: {direction}", code="invalid_direction"))
        root = tree.move(node_id, direction, self._document.root)  # type: ignore[arg-type]
        if _same_tree(root, self._document.root):
            return SessionOutcome(ok=True, document=self.document)
        return self._apply_edit(root, "move_node", "", node_id=node_id, direction=direction)

    @serialized
    def toggle_visibility(self, node_id: str) -> SessionOutcome:
        current = tree.find(node_id, self._document.root)
        if current is None:
            return SessionOutcome(ok=True)
        toggled = current.model_copy(update={"hidden": not current.hidden})
        root = tree.update(node_id, toggled, self._document.root)
        state = "hidden" if toggled.hidden else "shown"
        return self._apply_edit(root, "toggle_visibility", f"Component {state}", severity="info", node_id=node_id)

    # ------------------------------------------------------------------
    # Document intents
    # ------------------------------------------------------------------
    @serialized
    def rename(self, name: str) -> SessionOutcome:
        """Rename immediately; history gets one entry once typing goes quiet."""

        self._document = self._document.model_copy(update={"name": name})
        self._history.touch(NAME_FIELD, self._current_document)
        self._publish(DocumentChanged(document_id=self._document.id, intent="rename"))
        return SessionOutcome(ok=True, changed=True, document=self.document)

    @serialized
    def save(self, *, is_major: bool = False, notes: Optional[str] = None) -> SessionOutcome:
        self._history.flush()
        existing = self._store.resolve_save_target(self._document.name)
        try:
            saved = self._store.save(self._document, is_major=is_major, notes=notes)
        except WidgetForgeError as exc:
            return self._fail(exc)

        previous = self._document
        self._document = saved
        if previous.id is None and saved.id is not None:
            self._history.adopt_document_id(saved.id, previous.draft_key)
        # stamping id and version is not an undoable change
        self._history.mark_replay()
        self._history.record(self._document)

        verb = "saved" if existing.create else "updated"
        logger.info("session_saved id=%s version=%s", saved.id, saved.version)
        return self._succeed(f'Widget "{saved.name}" {verb} successfully', changed=True)

    @serialized
    def load(self, document_id: str) -> SessionOutcome:
        self._history.flush()
        document = self._store.get(document_id)
        if document is None:
            return self._fail(NotFoundError(f"Widget {document_id} not found"))
        previous_id = self._document.id
        self._document = document
        self._history.record_load(document)
        if previous_id != document.id:
            self._publish(DocumentSwitched(previous_id=previous_id, current_id=document.id, reason="load"))
        return self._succeed(f'Widget "{document.name}" loaded', changed=True)

    @serialized
    def new_document(self, name: str = PLACEHOLDER_NAME) -> SessionOutcome:
        self._history.flush()
        previous_id = self._document.id
        self._document = Document(name=name, draft_key=new_draft_key())
        self._history.record_load(self._document)
        self._publish(DocumentSwitched(previous_id=previous_id, current_id=None, reason="new"))
        return self._succeed("Started a new widget", severity="info", changed=True)

    @serialized
    def apply_template(self, template_id: str) -> SessionOutcome:
        self._history.flush()
        document = clone_template(template_id, self._catalog.new_node_id)
        if document is None:
            return self._fail(NotFoundError(f"Template {template_id} not found"))
        document = document.model_copy(update={"draft_key": new_draft_key()})
        previous_id = self._document.id
        self._document = document
        self._history.record_load(document)
        self._publish(DocumentSwitched(previous_id=previous_id, current_id=None, reason="template"))
        return self._succeed(f'Template "{document.name}" applied', changed=True)

    @serialized
    def versions(self) -> List[VersionLedgerEntry]:
        if self._document.id is None:
            return []
        return self._store.get_versions(self._document.id)

    @serialized
    def restore_version(self, entry: Union[VersionLedgerEntry, str]) -> SessionOutcome:
        """Bring back a ledgered tree as an ordinary, undoable edit."""

        if self._document.id is None:
            return self._fail(NotFoundError("Save the widget before restoring a version"))
        try:
            restored = self._store.restore_version(self._document.id, entry)
        except WidgetForgeError as exc:
            return self._fail(exc)
        return self._apply_edit(
            restored.root,
            "restore_version",
            f"Restored version {restored.version}",
            version=restored.version,
        )

    # ------------------------------------------------------------------
    # History intents
    # ------------------------------------------------------------------
    @serialized
    def undo(self) -> SessionOutcome:
        self._history.flush()
        step = self._history.undo(self._document.id, self._document.draft_key)
        if step is None:
            return SessionOutcome(ok=False, message="Nothing to undo", severity="info", document=self.document)
        return self._apply_step(step, "undo")

    @serialized
    def redo(self) -> SessionOutcome:
        self._history.flush()
        step = self._history.redo(self._document.id, self._document.draft_key)
        if step is None:
            return SessionOutcome(ok=False, message="Nothing to redo", severity="info", document=self.document)
        return self._apply_step(step, "redo")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _apply_step(self, step: HistoryStep, intent: str) -> SessionOutcome:
        snapshot = step.snapshot
        stored = self._store.get(snapshot.document_id) if snapshot.document_id else None
        changes: Dict[str, Any] = {
            "name": snapshot.name,
            "root": snapshot.root,
            "version": stored.version if stored is not None else INITIAL_VERSION,
        }
        if step.document_switched:
            previous_id = self._document.id
            base = stored if stored is not None else Document(draft_key=snapshot.draft_key)
            self._document = base.model_copy(update=changes)
            self._publish(DocumentSwitched(previous_id=previous_id, current_id=base.id, reason=intent))
        else:
            self._document = self._document.model_copy(update=changes)
        self._history.mark_replay()
        self._history.record(self._document)
        self._publish(DocumentChanged(document_id=self._document.id, intent=intent))
        return SessionOutcome(ok=True, changed=True, severity="info", document=self.document)

    def _apply_edit(
        self,
        root: Sequence[ComponentNode],
        intent: str,
        message: str,
        *,
        severity: str = "success",
        version: Optional[str] = None,
        **details: object,
    ) -> SessionOutcome:
        update: Dict[str, Any] = {"root": list(root)}
        if version is not None:
            update["version"] = version
        self._document = self._document.model_copy(update=update)
        self._history.record(self._document)
        self._publish(DocumentChanged(document_id=self._document.id, intent=intent, details=dict(details)))
        if not message:
            return SessionOutcome(ok=True, changed=True, document=self.document)
        return self._succeed(message, severity=severity, changed=True)

    def _succeed(self, message: str, *, severity: str = "success", changed: bool = False) -> SessionOutcome:
        self._publish(Notification(message=message, severity=severity))
        return SessionOutcome(ok=True, message=message, severity=severity, changed=changed, document=self.document)

    def _fail(self, error: WidgetForgeError) -> SessionOutcome:
        logger.info("session_intent_rejected code=%s message=%s", error.code, error.message)
        self._publish(Notification(message=error.message, severity="error"))
        return SessionOutcome(ok=False, message=error.message, severity="error", error=error, document=self.document)

    def _current_document(self) -> Document:
        # called from the coalescing timer thread
        with self._lock:
            return self._document

    def _publish(self, event: Any) -> None:
        self._bus.publish(event)

    def _publish_history(self) -> None:
        self._publish(
            HistoryChanged(can_undo=self._history.can_undo, can_redo=self._history.can_redo, size=self._history.size)
        )


def _same_tree(left: Sequence[ComponentNode], right: Sequence[ComponentNode]) -> bool:
    return [node.model_dump() for node in left] == [node.model_dump() for node in right]
