"""Component kinds a widget can be built from, with their seed properties."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional
from uuid import uuid4

from widgetforge.core.errors import NotFoundError
from widgetforge.core.tree.node import ComponentNode

UI_COMPONENTS = "UI Components"
LAYOUT_CONTAINERS = "Layout Containers"

_CHART_DATA = """{
  "labels": ["Jan", "Feb", "Mar", "Apr", "May", "Jun"],
  "datasets": [{"data": [30, 20, 15, 25, 10, 5]}]
}"""


@dataclass(frozen=True)
class ComponentKind:
    kind: str
    label: str
    category: str
    default_properties: Dict[str, Any] = field(default_factory=dict)
    container: bool = False
    tooltip: str = ""


COMPONENT_KINDS: List[ComponentKind] = [
    ComponentKind(
        "Label",
        "Text Label",
        UI_COMPONENTS,
        {"text": "Label Text"},
        tooltip="Adds a static text label to display information",
    ),
    ComponentKind(
        "TextField",
        "Text Field",
        UI_COMPONENTS,
        {"label": "Text Field", "placeholder": "Enter text...", "defaultValue": ""},
        tooltip="Adds an input field for user text entry",
    ),
    ComponentKind(
        "Button",
        "Button",
        UI_COMPONENTS,
        {
            "text": "Button",
            "variant": "contained",
            "showToast": True,
            "toastMessage": "Button clicked!",
            "toastSeverity": "info",
        },
        tooltip="Adds a clickable button that can trigger actions like showing notifications",
    ),
    ComponentKind(
        "SwitchEnable",
        "Switch",
        UI_COMPONENTS,
        {"label": "Switch", "defaultChecked": False},
        tooltip="Adds an on/off toggle switch for boolean settings",
    ),
    ComponentKind(
        "Chart",
        "Pie Chart",
        UI_COMPONENTS,
        {"title": "", "chartType": "pie", "height": 400, "description": "", "data": _CHART_DATA},
        tooltip="Adds a pie chart visualization with JSON data",
    ),
    ComponentKind(
        "FieldSet",
        "Field Set",
        LAYOUT_CONTAINERS,
        {"legend": "Field Set", "collapsed": False},
        container=True,
        tooltip="Creates a collapsible container to organize related components",
    ),
    ComponentKind(
        "FlexBox",
        "Flex Container",
        LAYOUT_CONTAINERS,
        {"direction": "row", "justifyContent": "flex-start", "alignItems": "center", "spacing": 0, "wrap": "wrap"},
        container=True,
        tooltip="Creates a flexible row or column layout container",
    ),
    ComponentKind(
        "GridBox",
        "Grid Container",
        LAYOUT_CONTAINERS,
        {"columns": 2, "rows": 1, "spacing": 2},
        container=True,
        tooltip="Creates a grid layout container for organizing components in rows and columns",
    ),
]


def default_node_id(kind: str) -> str:
    return f"{kind}-{uuid4().hex[:12]}"


class ComponentCatalog:
    """Lookup over component kinds; seeds new nodes with default properties."""

    def __init__(
        self,
        kinds: Optional[Iterable[ComponentKind]] = None,
        *,
        id_factory: Callable[[str], str] = default_node_id,
    ) -> None:
        self._kinds: Dict[str, ComponentKind] = {}
        for entry in kinds if kinds is not None else COMPONENT_KINDS:
            self._kinds[entry.kind] = entry
        self._id_factory = id_factory

    def __contains__(self, kind: object) -> bool:
        return kind in self._kinds

    def get(self, kind: str) -> Optional[ComponentKind]:
        return self._kinds.get(kind)

    def kinds(self) -> List[ComponentKind]:
        return list(self._kinds.values())

    def is_container(self, kind: str) -> bool:
        entry = self._kinds.get(kind)
        return bool(entry and entry.container)

    def by_category(self) -> Dict[str, List[ComponentKind]]:
        grouped: Dict[str, List[ComponentKind]] = {}
        for entry in self._kinds.values():
            grouped.setdefault(entry.category, []).append(entry)
        return grouped

    def new_node_id(self, kind: str) -> str:
        return self._id_factory(kind)

    def create_node(self, kind: str, properties: Optional[Dict[str, Any]] = None) -> ComponentNode:
        entry = self._kinds.get(kind)
        if entry is None:
            raise NotFoundError(f"Unknown component kind: {kind}")
        seeded = copy.deepcopy(entry.default_properties)
        if properties:
            seeded.update(properties)
        return ComponentNode(id=self._id_factory(kind), kind=kind, properties=seeded)
