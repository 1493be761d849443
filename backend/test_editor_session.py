from __future__ import annotations

import json
from concurrent.futures import ThreadPoolExecutor
from itertools import count
from typing import List

import pytest

from conftest import ManualScheduler, node
from widgetforge.core.catalog import ComponentCatalog
from widgetforge.core.events import DocumentSwitched, EventBus, HistoryChanged, Notification
from widgetforge.core.store import Document, DocumentStore
from widgetforge.services import EditorSession


def make_catalog() -> ComponentCatalog:
    counter = count(1)
    return ComponentCatalog(id_factory=lambda kind: f"{kind.lower()}-{next(counter)}")


@pytest.fixture()
def session(store: DocumentStore, bus: EventBus, scheduler: ManualScheduler) -> EditorSession:
    return EditorSession(store, bus=bus, catalog=make_catalog(), scheduler=scheduler)


def root_ids(session: EditorSession) -> List[str]:
    return [item.id for item in session.document.root]


def test_save_version_restore_walkthrough(session: EditorSession) -> None:
    rejected = session.save()
    assert not rejected.ok
    assert rejected.severity == "error"

    session.add_node("Label")
    session.rename("Status Panel")
    created = session.save()
    assert created.ok
    assert created.message == 'Widget "Status Panel" saved successfully'
    assert created.document.version == "1.0"

    session.add_node("Button")
    updated = session.save()
    assert updated.message == 'Widget "Status Panel" updated successfully'
    assert updated.document.version == "1.1"
    ledger = session.versions()
    assert [entry.version for entry in ledger] == ["1.0"]

    restored = session.restore_version(ledger[0])
    assert restored.ok
    assert root_ids(session) == ["label-1"]

    final = session.save()
    assert final.document.version == "1.2"
    ledger = session.versions()
    assert [entry.version for entry in ledger] == ["1.0", "1.1"]
    assert [item.id for item in ledger[1].root] == ["label-1", "button-2"]


def test_restore_version_is_undoable(session: EditorSession) -> None:
    session.add_node("Label")
    session.rename("Status Panel")
    session.save()
    session.add_node("Button")
    session.save()

    session.restore_version(session.versions()[0])
    assert root_ids(session) == ["label-1"]

    session.undo()
    assert root_ids(session) == ["label-1", "button-2"]


def test_restore_requires_a_saved_document(session: EditorSession) -> None:
    outcome = session.restore_version("version-1")

    assert not outcome.ok
    assert outcome.code == "not_found"


def test_undo_redo_of_structural_edits(session: EditorSession) -> None:
    session.add_node("FlexBox")
    session.add_node("Label")
    session.drop_node("Button", "flexbox-1")
    session.move_node("label-2", "up")
    assert root_ids(session) == ["label-2", "flexbox-1"]

    assert session.undo().ok
    assert root_ids(session) == ["flexbox-1", "label-2"]
    assert [child.id for child in session.document.root[0].children] == ["button-3"]
    session.undo()
    assert session.document.root[0].children == []
    session.redo()
    assert [child.id for child in session.document.root[0].children] == ["button-3"]


def test_undo_with_empty_history_reports_nothing_to_undo(session: EditorSession) -> None:
    outcome = session.undo()

    assert not outcome.ok
    assert outcome.message == "Nothing to undo"
    assert outcome.severity == "info"
    assert not session.redo().ok


def test_undo_past_first_save_keeps_the_saved_identity(session: EditorSession, bus: EventBus) -> None:
    switches: List[DocumentSwitched] = []
    bus.subscribe(DocumentSwitched, switches.append)
    session.add_node("Label")
    session.rename("Status Panel")
    saved = session.save().document
    session.add_node("Button")

    session.undo()

    assert session.document.id == saved.id
    assert root_ids(session) == ["label-1"]
    assert switches == []


def test_undo_across_loaded_documents(store: DocumentStore, session: EditorSession, bus: EventBus) -> None:
    first = store.save(Document(name="First", root=[node("label-a")]))
    second = store.save(Document(name="Second", root=[node("label-b")]))
    switches: List[DocumentSwitched] = []
    bus.subscribe(DocumentSwitched, switches.append)

    session.load(first.id)
    session.add_node("Button")
    session.load(second.id)
    outcome = session.undo()

    assert outcome.ok
    assert session.document.id == first.id
    assert session.document.name == "First"
    assert root_ids(session) == ["label-a", "button-1"]
    assert [(event.previous_id, event.current_id, event.reason) for event in switches] == [
        (None, first.id, "load"),
        (first.id, second.id, "load"),
        (second.id, first.id, "undo"),
    ]

    session.redo()
    assert session.document.id == second.id
    assert root_ids(session) == ["label-b"]


def test_rename_is_coalesced_into_one_history_entry(session: EditorSession, scheduler: ManualScheduler) -> None:
    session.add_node("Label")
    size = session.history.size

    for partial in ("S", "St", "Sta", "Stat"):
        session.rename(partial)

    assert session.document.name == "Stat"
    assert session.history.size == size
    scheduler.fire_all()
    assert session.history.size == size + 1

    session.undo()
    assert session.document.name == "New Widget"


def test_structural_edit_during_rename_window_is_folded_into_rename(
    session: EditorSession, scheduler: ManualScheduler
) -> None:
    session.add_node("Label")
    size = session.history.size

    session.rename("Status")
    session.add_node("Button")
    assert session.history.size == size

    scheduler.fire_all()
    entry = session.history.current()
    assert entry.name == "Status"
    assert [item.id for item in entry.root] == ["label-1", "button-2"]


def test_delete_asks_for_confirmation(store: DocumentStore, bus: EventBus, scheduler: ManualScheduler) -> None:
    asked: List[str] = []

    def decline(node_id: str) -> bool:
        asked.append(node_id)
        return False

    session = EditorSession(store, bus=bus, catalog=make_catalog(), confirm_delete=decline, scheduler=scheduler)
    session.add_node("Label")

    cancelled = session.delete_node("label-1")
    assert not cancelled.ok
    assert cancelled.message == "Delete cancelled"
    assert root_ids(session) == ["label-1"]
    assert asked == ["label-1"]

    deleted = session.delete_node("label-1", confirmed=True)
    assert deleted.ok
    assert root_ids(session) == []


def test_drop_requires_an_existing_container(session: EditorSession, notifications: List[Notification]) -> None:
    session.add_node("Label")

    not_container = session.drop_node("Button", "label-1")
    missing = session.drop_node("Button", "flexbox-404")
    unknown_kind = session.add_node("Slider")

    assert not_container.code == "not_a_container"
    assert missing.code == "not_found"
    assert unknown_kind.code == "not_found"
    assert root_ids(session) == ["label-1"]
    assert [note.severity for note in notifications[-3:]] == ["error", "error", "error"]


def test_add_messages_name_the_component(session: EditorSession) -> None:
    assert session.add_node("GridBox").message == "Added Grid Container component"
    assert session.drop_node("Chart", "gridbox-1").message == "Added Pie Chart to GridBox"


def test_edits_on_unknown_nodes_are_silent(session: EditorSession) -> None:
    for outcome in (
        session.delete_node("ghost"),
        session.toggle_visibility("ghost"),
        session.set_properties("ghost", {"text": "x"}),
        session.update_node(node("ghost")),
    ):
        assert outcome.ok
        assert not outcome.changed
    assert session.history.size == 1


def test_move_at_boundary_changes_nothing(session: EditorSession) -> None:
    session.add_node("Label")
    size = session.history.size

    outcome = session.move_node("label-1", "up")

    assert outcome.ok
    assert not outcome.changed
    assert session.history.size == size
    assert session.move_node("label-1", "sideways").code == "invalid_direction"


def test_properties_and_visibility(session: EditorSession) -> None:
    session.add_node("Button", properties={"text": "Go"})

    session.set_properties("button-1", {"variant": "outlined"})
    hidden = session.toggle_visibility("button-1")

    button = session.document.root[0]
    assert button.properties["text"] == "Go"
    assert button.properties["variant"] == "outlined"
    assert button.properties["showToast"] is True
    assert button.hidden
    assert hidden.message == "Component hidden"


def test_document_property_is_a_copy(session: EditorSession) -> None:
    session.add_node("Label")

    session.document.root.clear()

    assert root_ids(session) == ["label-1"]


def test_apply_template_starts_unsaved_copy(session: EditorSession) -> None:
    outcome = session.apply_template("template-basic-form")

    document = session.document
    assert outcome.ok
    assert document.id is None
    assert document.name == "Basic Form"
    assert document.category == "Form"
    assert all(not item.id.startswith("template-") for item in document.root)
    assert not session.apply_template("template-missing").ok


def test_load_missing_document_fails(session: EditorSession) -> None:
    outcome = session.load("widget-404")

    assert not outcome.ok
    assert outcome.code == "not_found"


def test_new_document_resets_working_copy(session: EditorSession) -> None:
    session.add_node("Label")
    session.new_document()

    assert session.document.name == "New Widget"
    assert root_ids(session) == []


def test_history_changes_are_published(session: EditorSession, bus: EventBus) -> None:
    received: List[HistoryChanged] = []
    bus.subscribe(HistoryChanged, received.append)

    session.add_node("Label")
    session.undo()

    assert received[0].can_undo
    assert not received[-1].can_undo
    assert received[-1].can_redo


def test_undo_back_into_an_earlier_draft_keeps_it_separate(
    store: DocumentStore, session: EditorSession, bus: EventBus
) -> None:
    switches: List[DocumentSwitched] = []
    bus.subscribe(DocumentSwitched, switches.append)
    session.add_node("Label")
    session.new_document()
    session.add_node("Button")
    session.rename("B")
    saved = session.save().document

    session.undo()
    session.undo()
    assert session.document.id == saved.id
    assert root_ids(session) == []

    session.undo()
    assert session.document.id is None
    assert [item.kind for item in session.document.root] == ["Label"]
    assert (switches[-1].previous_id, switches[-1].current_id, switches[-1].reason) == (saved.id, None, "undo")
    assert [item.kind for item in store.get(saved.id).root] == ["Button"]
    assert "draft_key" not in json.loads(store.export_all())[0]


def test_update_node_rejects_subtree_reusing_existing_ids(
    session: EditorSession, notifications: List[Notification]
) -> None:
    session.add_node("FlexBox")
    session.add_node("Label")
    size = session.history.size

    outcome = session.update_node(node("flexbox-1", "FlexBox", [node("label-2")]))

    assert outcome.code == "duplicate_node_id"
    assert notifications[-1].severity == "error"
    assert session.document.root[0].children == []
    assert session.history.size == size


def test_concurrent_adds_are_all_kept(session: EditorSession) -> None:
    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(lambda _: session.add_node("Label"), range(40)))

    assert all(outcome.ok for outcome in outcomes)
    assert len(root_ids(session)) == 40
    assert len(set(root_ids(session))) == 40


def test_undo_of_restore_shows_the_stored_version(session: EditorSession) -> None:
    session.add_node("Label")
    session.rename("Status Panel")
    session.save()
    session.add_node("Button")
    session.save()

    session.restore_version(session.versions()[0])
    assert session.document.version == "1.0"

    session.undo()
    assert session.document.version == "1.1"
    assert root_ids(session) == ["label-1", "button-2"]
