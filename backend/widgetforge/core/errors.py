"""Typed failures raised by the widget document engine."""

from __future__ import annotations

from typing import Optional


class WidgetForgeError(Exception):
    """Base exception for the document/version engine."""

    code = "widgetforge_error"

    def __init__(self, message: str, *, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(WidgetForgeError):
    """Raised when a document, node or import payload is rejected."""

    code = "validation_error"


class DuplicateNodeError(ValidationError):
    """Raised when an inserted subtree reuses an id already in the tree."""

    code = "duplicate_node_id"


class NotFoundError(WidgetForgeError):
    """Raised when an intent references a document or node that does not exist."""

    code = "not_found"
