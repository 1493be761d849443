from .component_catalog import (
    COMPONENT_KINDS,
    LAYOUT_CONTAINERS,
    UI_COMPONENTS,
    ComponentCatalog,
    ComponentKind,
    default_node_id,
)
from .templates import clone_template, list_templates

__all__ = [
    "COMPONENT_KINDS",
    "LAYOUT_CONTAINERS",
    "UI_COMPONENTS",
    "ComponentCatalog",
    "ComponentKind",
    "clone_template",
    "default_node_id",
    "list_templates",
]
