"""Versioned document persistence."""

from .document_store import STORAGE_KEY, VERSION_STORAGE_KEY, DocumentStore, validate_for_storage
from .models import (
    PLACEHOLDER_NAME,
    WIDGET_CATEGORIES,
    Document,
    DocumentPatch,
    SaveTarget,
    SemanticVersion,
    VersionLedgerEntry,
)
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "PLACEHOLDER_NAME",
    "STORAGE_KEY",
    "VERSION_STORAGE_KEY",
    "WIDGET_CATEGORIES",
    "Document",
    "DocumentPatch",
    "DocumentStore",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "SaveTarget",
    "SemanticVersion",
    "VersionLedgerEntry",
    "validate_for_storage",
]
