"""Component tree model and pure tree operations."""

from .engine import (
    append,
    collect_ids,
    ensure_unique_ids,
    find,
    find_parent,
    insert_into,
    iter_nodes,
    move,
    remove,
    update,
    with_fresh_ids,
)
from .node import ComponentNode

__all__ = [
    "ComponentNode",
    "append",
    "collect_ids",
    "ensure_unique_ids",
    "find",
    "find_parent",
    "insert_into",
    "iter_nodes",
    "move",
    "remove",
    "update",
    "with_fresh_ids",
]
