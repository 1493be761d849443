"""Read-mostly endpoints over the widget library: listing, search, versions, export."""

from __future__ import annotations

import json
from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from widgetforge.core.errors import ValidationError
from widgetforge.core.store import DocumentStore

from .dependencies import get_store

router = APIRouter(prefix="/widgets", tags=["Widgets"])


@router.get("")
def list_widgets(
    category: Optional[str] = None,
    tag: Optional[str] = None,
    store: DocumentStore = Depends(get_store),
):
    if category:
        documents = store.get_by_category(category)
    elif tag:
        documents = store.get_by_tag(tag)
    else:
        documents = store.get_all()
    return {"status": "ok", "widgets": [doc.model_dump(mode="json") for doc in documents]}


@router.get("/search")
def search_widgets(q: str = "", store: DocumentStore = Depends(get_store)):
    return {"status": "ok", "widgets": [doc.model_dump(mode="json") for doc in store.search(q)]}


@router.get("/tags")
def list_tags(store: DocumentStore = Depends(get_store)):
    return {"status": "ok", "tags": sorted(store.all_tags())}


@router.get("/categories")
def list_categories(store: DocumentStore = Depends(get_store)):
    return {"status": "ok", "categories": store.all_categories()}


@router.get("/export")
def export_widgets(ids: Optional[List[str]] = Query(default=None), store: DocumentStore = Depends(get_store)):
    return {"status": "ok", "widgets": json.loads(store.export_all(ids))}


@router.post("/import")
def import_widgets(payload: Any = Body(...), store: DocumentStore = Depends(get_store)):
    serialized = payload if isinstance(payload, str) else json.dumps(payload)
    try:
        count = store.import_all(serialized)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail={"code": exc.code, "message": exc.message}) from exc
    return {"status": "ok", "imported": count}


@router.get("/{document_id}")
def get_widget(document_id: str, store: DocumentStore = Depends(get_store)):
    document = store.get(document_id)
    if document is None:
        raise HTTPException(status_code=404, detail="Widget not found")
    return {"status": "ok", "widget": document.model_dump(mode="json")}


@router.delete("/{document_id}")
def delete_widget(document_id: str, store: DocumentStore = Depends(get_store)):
    if not store.delete(document_id):
        raise HTTPException(status_code=404, detail="Widget not found")
    return {"status": "ok", "deleted": document_id}


@router.get("/{document_id}/versions")
def list_versions(document_id: str, store: DocumentStore = Depends(get_store)):
    if store.get(document_id) is None:
        raise HTTPException(status_code=404, detail="Widget not found")
    return {
        "status": "ok",
        "versions": [entry.model_dump(mode="json") for entry in store.get_versions(document_id)],
    }
