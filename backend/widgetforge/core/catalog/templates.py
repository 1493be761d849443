"""Starter widgets offered when a user begins from a template."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from widgetforge.core.store.models import Document
from widgetforge.core.tree.engine import with_fresh_ids

TEMPLATE_SUFFIX = " Template"

_TEMPLATES: List[Dict[str, Any]] = [
    {
        "id": "template-basic-form",
        "name": "Basic Form Template",
        "category": "Form",
        "description": "User information form with a submit button",
        "root": [
            {
                "id": "template-fieldset-1",
                "kind": "FieldSet",
                "properties": {"legend": "User Information", "collapsed": False},
                "children": [
                    {
                        "id": "template-text-1",
                        "kind": "TextField",
                        "properties": {"label": "Full Name", "placeholder": "Enter your full name", "required": True},
                    },
                    {
                        "id": "template-text-2",
                        "kind": "TextField",
                        "properties": {"label": "Email Address", "placeholder": "Enter your email", "required": True},
                    },
                    {
                        "id": "template-switch-1",
                        "kind": "SwitchEnable",
                        "properties": {"label": "Subscribe to newsletter", "defaultChecked": True},
                    },
                ],
            },
            {
                "id": "template-button-1",
                "kind": "Button",
                "properties": {
                    "text": "Submit",
                    "variant": "contained",
                    "showToast": True,
                    "toastMessage": "Form submitted successfully!",
                    "toastSeverity": "success",
                },
            },
        ],
    },
    {
        "id": "template-report",
        "name": "Status Report Template",
        "category": "Status",
        "description": "System switches, uptime fields and report actions",
        "root": [
            {"id": "template-title", "kind": "Label", "properties": {"text": "System Status Report", "variant": "h5"}},
            {
                "id": "template-grid-1",
                "kind": "GridBox",
                "properties": {"columns": 2, "rows": 1, "spacing": 2},
                "children": [
                    {
                        "id": "template-fieldset-report1",
                        "kind": "FieldSet",
                        "properties": {"legend": "System Status", "collapsed": False},
                        "children": [
                            {"id": "template-switch-system", "kind": "SwitchEnable", "properties": {"label": "System Online", "defaultChecked": True}},
                            {"id": "template-switch-backups", "kind": "SwitchEnable", "properties": {"label": "Backups Enabled", "defaultChecked": True}},
                        ],
                    },
                    {
                        "id": "template-fieldset-report2",
                        "kind": "FieldSet",
                        "properties": {"legend": "Statistics", "collapsed": False},
                        "children": [
                            {"id": "template-text-uptime", "kind": "TextField", "properties": {"label": "Uptime", "defaultValue": "99.9%"}},
                        ],
                    },
                ],
            },
            {
                "id": "template-actions",
                "kind": "FlexBox",
                "properties": {"direction": "row", "justifyContent": "flex-end", "alignItems": "center", "spacing": 1},
                "children": [
                    {"id": "template-button-refresh", "kind": "Button", "properties": {"text": "Refresh", "variant": "outlined"}},
                    {"id": "template-button-export", "kind": "Button", "properties": {"text": "Export Report", "variant": "contained"}},
                ],
            },
        ],
    },
]


def list_templates() -> List[Document]:
    return [Document.model_validate(template) for template in _TEMPLATES]


def clone_template(template_id: str, id_factory: Callable[[str], str]) -> Optional[Document]:
    """Unsaved copy of a template with its suffix dropped and every node id regenerated."""

    template = next((item for item in _TEMPLATES if item["id"] == template_id), None)
    if template is None:
        return None
    source = Document.model_validate(template)
    name = source.name[: -len(TEMPLATE_SUFFIX)] if source.name.endswith(TEMPLATE_SUFFIX) else source.name
    return Document(
        name=name,
        root=[with_fresh_ids(node, id_factory) for node in source.root],
        category=source.category,
        description=source.description,
    )
