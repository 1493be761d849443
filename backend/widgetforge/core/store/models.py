"""Persisted widget documents and their version ledger."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field

from widgetforge.core.tree.node import ComponentNode

PLACEHOLDER_NAME = "New Widget"
DEFAULT_CATEGORY = "Other"
INITIAL_VERSION = "1.0"

# Preset categories offered by the widget library.
WIDGET_CATEGORIES: List[str] = [
    "Dashboard",
    "Form",
    "Status",
    "Chart",
    "Administration",
    "User Interface",
    "Navigation",
    "Data Entry",
    "System",
    "Other",
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SemanticVersion:
    """Two-part ``MAJOR.MINOR`` counter stamped on every saved document."""

    major: int = 1
    minor: int = 0

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SemanticVersion":
        parts = str(raw or "").split(".")
        if len(parts) < 2:
            return cls()
        try:
            return cls(int(parts[0]), int(parts[1]))
        except ValueError:
            return cls()

    def bump_minor(self) -> "SemanticVersion":
        return SemanticVersion(self.major, self.minor + 1)

    def bump_major(self) -> "SemanticVersion":
        return SemanticVersion(self.major + 1, 0)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


class Document(BaseModel):
    """One saved or savable widget definition."""

    id: Optional[str] = None
    name: str = PLACEHOLDER_NAME
    root: List[ComponentNode] = Field(default_factory=list)
    version: str = INITIAL_VERSION
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    category: str = DEFAULT_CATEGORY
    tags: List[str] = Field(default_factory=list)
    description: str = ""
    author: str = ""
    # session-local identity of an unsaved document; never serialized
    draft_key: Optional[str] = Field(default=None, exclude=True)

    @property
    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion.parse(self.version)

    def clone(self) -> "Document":
        return self.model_copy(deep=True)


class DocumentPatch(BaseModel):
    """Sparse update merged into a stored document."""

    name: Optional[str] = None
    root: Optional[List[ComponentNode]] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    description: Optional[str] = None
    author: Optional[str] = None

    @classmethod
    def from_document(cls, document: Document) -> "DocumentPatch":
        return cls(
            name=document.name,
            root=[node.model_copy(deep=True) for node in document.root],
            category=document.category,
            tags=list(document.tags),
            description=document.description,
            author=document.author,
        )


class VersionLedgerEntry(BaseModel):
    """Immutable record of a document's state superseded by a save."""

    id: str
    document_id: str
    version: str
    root: List[ComponentNode] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    notes: Optional[str] = None


@dataclass(frozen=True)
class SaveTarget:
    """Where a save lands: a fresh document, or an existing one sharing the name."""

    update_existing: Optional[str] = None

    @property
    def create(self) -> bool:
        return self.update_existing is None
