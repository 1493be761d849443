"""Component descriptors forming a widget document's tree."""

from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class ComponentNode(BaseModel):
    """One element of the tree: a leaf control or a container."""

    id: str
    kind: str
    properties: Dict[str, Any] = Field(default_factory=dict)
    children: List["ComponentNode"] = Field(default_factory=list)
    hidden: bool = False


ComponentNode.model_rebuild()
