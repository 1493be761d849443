"""Request-scoped access to the store and session held by the application."""

from __future__ import annotations

from fastapi import HTTPException, Request

from widgetforge.core.errors import NotFoundError
from widgetforge.core.store import DocumentStore
from widgetforge.services.editor_session import EditorSession, SessionOutcome


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_session(request: Request) -> EditorSession:
    return request.app.state.session


def outcome_payload(outcome: SessionOutcome) -> dict:
    """Translate a session outcome into a response body, raising on typed failures."""

    if not outcome.ok and outcome.error is not None:
        status_code = 404 if isinstance(outcome.error, NotFoundError) else 422
        raise HTTPException(status_code=status_code, detail={"code": outcome.code, "message": outcome.message})
    document = outcome.document
    return {
        "status": "ok" if outcome.ok else "noop",
        "message": outcome.message,
        "severity": outcome.severity,
        "changed": outcome.changed,
        "document": document.model_dump(mode="json") if document is not None else None,
    }
