"""Versioned, searchable persistence for widget documents.

Documents and ledger entries live as two JSON arrays in a key-value medium.
The store is the single owner of that state: every read hands out deep copies
and every write goes through the methods below.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Union
from uuid import uuid4

from pydantic import ValidationError as ModelValidationError

from widgetforge.core.errors import NotFoundError, ValidationError
from widgetforge.core.events.event_bus import EventBus, StoreUpdated
from widgetforge.core.tree.engine import ensure_unique_ids
from widgetforge.core.tree.node import ComponentNode

from .models import (
    PLACEHOLDER_NAME,
    WIDGET_CATEGORIES,
    Document,
    DocumentPatch,
    SaveTarget,
    SemanticVersion,
    VersionLedgerEntry,
)
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

STORAGE_KEY = "widgetforge_documents"
VERSION_STORAGE_KEY = "widgetforge_document_versions"
IMPORT_SUFFIX = "imported"

PatchLike = Union[DocumentPatch, Mapping[str, Any]]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _default_id_factory(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex}"


def validate_for_storage(name: Optional[str], root: Iterable[ComponentNode]) -> None:
    """Reject documents that must never reach durable storage."""

    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Please enter a widget name", code="empty_name")
    if cleaned == PLACEHOLDER_NAME:
        raise ValidationError(f'"{PLACEHOLDER_NAME}" is a placeholder name', code="placeholder_name")
    nodes = list(root)
    if not nodes:
        raise ValidationError("Cannot save an empty widget", code="empty_tree")
    ensure_unique_ids(nodes)


class DocumentStore:
    """Durable keyed collection of documents with a per-document version ledger."""

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        bus: Optional[EventBus] = None,
        id_factory: Callable[[str], str] = _default_id_factory,
        clock: Callable[[], datetime] = _now,
    ) -> None:
        self._storage = storage
        self._bus = bus
        self._id_factory = id_factory
        self._clock = clock

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def resolve_save_target(self, name: str) -> SaveTarget:
        """Names are the de-duplication key: a known name updates that document."""

        for document in self._load_documents():
            if document.name == name:
                return SaveTarget(update_existing=document.id)
        return SaveTarget()

    def save(self, document: Document, *, is_major: bool = False, notes: Optional[str] = None) -> Document:
        validate_for_storage(document.name, document.root)
        target = self.resolve_save_target(document.name)
        if not target.create:
            assert target.update_existing is not None
            if document.id == target.update_existing:
                patch = DocumentPatch.from_document(document)
            else:
                patch = DocumentPatch(name=document.name, root=[node.model_copy(deep=True) for node in document.root])
            return self.update(target.update_existing, patch, is_major=is_major, notes=notes)

        now = self._clock()
        created = document.model_copy(
            update={
                "id": self._id_factory("widget"),
                "version": str(SemanticVersion()),
                "created_at": now,
                "updated_at": now,
            },
            deep=True,
        )
        documents = self._load_documents()
        documents.append(created)
        self._write_documents(documents)
        logger.info("document_created id=%s name=%s", created.id, created.name)
        self._publish("created", created.id)
        return created.clone()

    def update(
        self,
        document_id: str,
        patch: PatchLike,
        *,
        is_major: bool = False,
        notes: Optional[str] = None,
    ) -> Document:
        """Merge ``patch`` and bump the version, ledgering what is superseded."""

        if not isinstance(patch, DocumentPatch):
            try:
                patch = DocumentPatch.model_validate(dict(patch))
            except ModelValidationError as exc:
                raise ValidationError(f"Invalid document patch: {exc.errors()[0]['msg']}", code="invalid_patch") from exc

        documents = self._load_documents()
        index = next((idx for idx, doc in enumerate(documents) if doc.id == document_id), None)
        if index is None:
            raise NotFoundError(f"Widget {document_id} not found")
        current = documents[index]

        changes: Dict[str, Any] = {}
        for field_name in DocumentPatch.model_fields:
            value = getattr(patch, field_name)
            if value is None:
                continue
            if field_name == "root":
                value = [node.model_copy(deep=True) for node in value]
            elif isinstance(value, list):
                value = list(value)
            changes[field_name] = value
        validate_for_storage(changes.get("name", current.name), changes.get("root", current.root))

        entry = VersionLedgerEntry(
            id=self._id_factory("version"),
            document_id=document_id,
            version=current.version,
            root=[node.model_copy(deep=True) for node in current.root],
            created_at=self._clock(),
            notes=notes,
        )
        versions = self._load_versions()
        versions.append(entry)
        self._write_versions(versions)

        previous = current.semantic_version
        next_version = previous.bump_major() if is_major else previous.bump_minor()
        changes["version"] = str(next_version)
        changes["updated_at"] = self._clock()
        updated = current.model_copy(update=changes, deep=True)
        documents[index] = updated
        self._write_documents(documents)
        logger.info(
            "document_updated id=%s version=%s->%s major=%s",
            document_id,
            previous,
            next_version,
            is_major,
        )
        self._publish("updated", document_id)
        return updated.clone()

    def delete(self, document_id: str) -> bool:
        documents = self._load_documents()
        remaining = [doc for doc in documents if doc.id != document_id]
        if len(remaining) == len(documents):
            return False
        self._write_documents(remaining)
        versions = self._load_versions()
        kept = [entry for entry in versions if entry.document_id != document_id]
        if len(kept) != len(versions):
            self._write_versions(kept)
        logger.info("document_deleted id=%s", document_id)
        self._publish("deleted", document_id)
        return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get(self, document_id: str) -> Optional[Document]:
        for document in self._load_documents():
            if document.id == document_id:
                return document
        return None

    def get_all(self) -> List[Document]:
        return self._load_documents()

    def get_by_category(self, category: str) -> List[Document]:
        return [doc for doc in self._load_documents() if doc.category == category]

    def get_by_tag(self, tag: str) -> List[Document]:
        return [doc for doc in self._load_documents() if tag in doc.tags]

    def all_categories(self) -> List[str]:
        categories = list(WIDGET_CATEGORIES)
        for document in self._load_documents():
            if document.category and document.category not in categories:
                categories.append(document.category)
        return categories

    def all_tags(self) -> Set[str]:
        tags: Set[str] = set()
        for document in self._load_documents():
            tags.update(document.tags)
        return tags

    def search(self, query: str) -> List[Document]:
        """Case-insensitive substring match over name and description."""

        term = (query or "").strip().lower()
        documents = self._load_documents()
        if not term:
            return documents
        return [
            doc
            for doc in documents
            if term in doc.name.lower() or term in (doc.description or "").lower()
        ]

    # ------------------------------------------------------------------
    # Version ledger
    # ------------------------------------------------------------------
    def get_versions(self, document_id: str) -> List[VersionLedgerEntry]:
        """Ledger entries of one document, oldest first."""

        return [entry for entry in self._load_versions() if entry.document_id == document_id]

    def restore_version(self, document_id: str, entry: Union[VersionLedgerEntry, str]) -> Document:
        """Return a working copy of the document carrying ``entry``'s tree and version.

        Nothing is written: the restored state only becomes durable (and
        ledgered) when it is saved again.
        """

        document = self.get(document_id)
        if document is None:
            raise NotFoundError(f"Widget {document_id} not found")
        if isinstance(entry, str):
            resolved = next((item for item in self.get_versions(document_id) if item.id == entry), None)
            if resolved is None:
                raise NotFoundError(f"Version {entry} not found for widget {document_id}")
            entry = resolved
        if entry.document_id != document_id:
            raise ValidationError(
                f"Version {entry.id} belongs to widget {entry.document_id}, not {document_id}",
                code="foreign_version",
            )
        return document.model_copy(
            update={"root": [node.model_copy(deep=True) for node in entry.root], "version": entry.version},
            deep=True,
        )

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------
    def export_all(self, ids: Optional[Iterable[str]] = None) -> str:
        documents = self._load_documents()
        if ids is not None:
            wanted = set(ids)
            documents = [doc for doc in documents if doc.id in wanted]
        return json.dumps([doc.model_dump(mode="json") for doc in documents], ensure_ascii=False, indent=2)

    def import_all(self, serialized: Union[str, bytes]) -> int:
        """Import exported documents and return how many were stored.

        The payload must decode to a list; individual malformed items are
        skipped. Imported copies get fresh ids, and a name already in the store
        gets an ``(imported)`` suffix instead of overwriting.
        """

        try:
            payload = json.loads(serialized)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Import payload is not valid JSON", code="invalid_import") from exc
        if not isinstance(payload, list):
            raise ValidationError("Import payload must be a list of widgets", code="invalid_import")

        documents = self._load_documents()
        taken = {doc.name for doc in documents}
        imported = 0
        for position, item in enumerate(payload):
            if not isinstance(item, dict):
                logger.warning("import_item_skipped index=%d reason=not_an_object", position)
                continue
            try:
                candidate = Document.model_validate(item)
                validate_for_storage(candidate.name, candidate.root)
            except ModelValidationError:
                logger.warning("import_item_skipped index=%d reason=malformed", position)
                continue
            except ValidationError as exc:
                logger.warning("import_item_skipped index=%d reason=%s", position, exc.code)
                continue
            name = _disambiguate(candidate.name, taken)
            taken.add(name)
            documents.append(candidate.model_copy(update={"id": self._id_factory("widget"), "name": name}))
            imported += 1

        if imported:
            self._write_documents(documents)
            self._publish("imported", None)
        logger.info("documents_imported count=%d offered=%d", imported, len(payload))
        return imported

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _load_documents(self) -> List[Document]:
        documents: List[Document] = []
        for position, item in enumerate(self._load_array(STORAGE_KEY)):
            try:
                document = Document.model_validate(item)
            except ModelValidationError:
                logger.warning("stored_document_skipped index=%d", position)
                continue
            if not document.id:
                document = document.model_copy(update={"id": self._id_factory("widget")})
            documents.append(document)
        return documents

    def _load_versions(self) -> List[VersionLedgerEntry]:
        entries: List[VersionLedgerEntry] = []
        for position, item in enumerate(self._load_array(VERSION_STORAGE_KEY)):
            try:
                entries.append(VersionLedgerEntry.model_validate(item))
            except ModelValidationError:
                logger.warning("stored_version_skipped index=%d", position)
        return entries

    def _load_array(self, key: str) -> List[Any]:
        raw = self._storage.get(key)
        if not raw:
            return []
        try:
            parsed = json.loads(raw)
        except ValueError:
            logger.error("stored_payload_unreadable key=%s", key)
            return []
        if not isinstance(parsed, list):
            logger.error("stored_payload_not_a_list key=%s", key)
            return []
        return parsed

    def _write_documents(self, documents: List[Document]) -> None:
        self._storage.set(STORAGE_KEY, json.dumps([doc.model_dump(mode="json") for doc in documents], ensure_ascii=False))

    def _write_versions(self, versions: List[VersionLedgerEntry]) -> None:
        self._storage.set(
            VERSION_STORAGE_KEY,
            json.dumps([entry.model_dump(mode="json") for entry in versions], ensure_ascii=False),
        )

    def _publish(self, action: str, document_id: Optional[str]) -> None:
        if self._bus is not None:
            self._bus.publish(StoreUpdated(action=action, document_id=document_id))


def _disambiguate(name: str, taken: Set[str]) -> str:
    if name not in taken:
        return name
    candidate = f"{name} ({IMPORT_SUFFIX})"
    counter = 2
    while candidate in taken:
        candidate = f"{name} ({IMPORT_SUFFIX} {counter})"
        counter += 1
    return candidate
