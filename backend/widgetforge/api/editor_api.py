"""Editing intents dispatched by the presentation layer into the editor session."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from widgetforge.services.editor_session import EditorSession

from .dependencies import get_session, outcome_payload

router = APIRouter(prefix="/editor", tags=["Editor"])


class AddNodeInput(BaseModel):
    kind: str
    container_id: Optional[str] = None
    properties: Optional[Dict[str, Any]] = None


class MoveInput(BaseModel):
    direction: Literal["up", "down"]


class RenameInput(BaseModel):
    name: str


class SaveInput(BaseModel):
    is_major: bool = False
    notes: Optional[str] = None


class RestoreInput(BaseModel):
    version_id: str


@router.get("/state")
def get_state(session: EditorSession = Depends(get_session)):
    return {
        "status": "ok",
        "document": session.document.model_dump(mode="json"),
        "can_undo": session.can_undo,
        "can_redo": session.can_redo,
    }


@router.post("/nodes")
def add_node(data: AddNodeInput, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.add_node(data.kind, container_id=data.container_id, properties=data.properties))


@router.delete("/nodes/{node_id}")
def delete_node(node_id: str, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.delete_node(node_id, confirmed=True))


@router.post("/nodes/{node_id}/move")
def move_node(node_id: str, data: MoveInput, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.move_node(node_id, data.direction))


@router.post("/nodes/{node_id}/toggle-visibility")
def toggle_visibility(node_id: str, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.toggle_visibility(node_id))


@router.post("/rename")
def rename(data: RenameInput, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.rename(data.name))


@router.post("/save")
def save(data: SaveInput, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.save(is_major=data.is_major, notes=data.notes))


@router.post("/load/{document_id}")
def load(document_id: str, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.load(document_id))


@router.post("/new")
def new_document(session: EditorSession = Depends(get_session)):
    return outcome_payload(session.new_document())


@router.post("/templates/{template_id}")
def apply_template(template_id: str, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.apply_template(template_id))


@router.post("/restore")
def restore_version(data: RestoreInput, session: EditorSession = Depends(get_session)):
    return outcome_payload(session.restore_version(data.version_id))


@router.post("/undo")
def undo(session: EditorSession = Depends(get_session)):
    return outcome_payload(session.undo())


@router.post("/redo")
def redo(session: EditorSession = Depends(get_session)):
    return outcome_payload(session.redo())
