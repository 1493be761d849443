"""Pure operations over a document's component tree.

Every function takes the current root list and returns a new one; callers
replace their stored root with the result. Subtrees that an operation does not
touch are shared between the old and the new root, so neither list may be
mutated in place afterwards.

Lookups walk the tree depth-first. No parent index is kept: widget trees are a
few dozen nodes and are edited far more often than they are queried.
"""

from __future__ import annotations

from typing import Callable, Iterator, List, Literal, Optional, Sequence, Set

from widgetforge.core.errors import DuplicateNodeError

from .node import ComponentNode

Direction = Literal["up", "down"]
IdFactory = Callable[[str], str]


def find(node_id: str, root: Sequence[ComponentNode]) -> Optional[ComponentNode]:
    """Return the node with ``node_id`` anywhere in the nesting, or ``None``."""

    for node in root:
        if node.id == node_id:
            return node
        if node.children:
            found = find(node_id, node.children)
            if found is not None:
                return found
    return None


def find_parent(node_id: str, root: Sequence[ComponentNode]) -> Optional[ComponentNode]:
    """Return the container holding ``node_id``; ``None`` for root-level or absent ids."""

    for node in root:
        if any(child.id == node_id for child in node.children):
            return node
        if node.children:
            found = find_parent(node_id, node.children)
            if found is not None:
                return found
    return None


def iter_nodes(root: Sequence[ComponentNode]) -> Iterator[ComponentNode]:
    for node in root:
        yield node
        if node.children:
            yield from iter_nodes(node.children)


def collect_ids(root: Sequence[ComponentNode]) -> Set[str]:
    return {node.id for node in iter_nodes(root)}


def ensure_unique_ids(root: Sequence[ComponentNode]) -> None:
    """Raise ``DuplicateNodeError`` when any id occurs more than once in ``root``."""

    seen: Set[str] = set()
    for node in iter_nodes(root):
        if node.id in seen:
            raise DuplicateNodeError(f"Node id already present in tree: {node.id}")
        seen.add(node.id)


def update(
    node_id: str,
    replacement: ComponentNode,
    root: Sequence[ComponentNode],
) -> List[ComponentNode]:
    """Replace the node with ``node_id`` in place. Absent ids leave the tree unchanged."""

    result: List[ComponentNode] = []
    for node in root:
        if node.id == node_id:
            result.append(replacement)
        elif node.children:
            result.append(node.model_copy(update={"children": update(node_id, replacement, node.children)}))
        else:
            result.append(node)
    return result


def remove(node_id: str, root: Sequence[ComponentNode]) -> List[ComponentNode]:
    """Delete the node with ``node_id`` from wherever it is nested.

    The current level is filtered first; only when nothing matched there does
    the search descend into the children. With unique ids this removes exactly
    one node.
    """

    filtered = [node for node in root if node.id != node_id]
    if len(filtered) != len(root):
        return filtered

    result: List[ComponentNode] = []
    for node in root:
        if node.children:
            result.append(node.model_copy(update={"children": remove(node_id, node.children)}))
        else:
            result.append(node)
    return result


def move(node_id: str, direction: Direction, root: Sequence[ComponentNode]) -> List[ComponentNode]:
    """Swap the node with its immediate sibling in ``direction``.

    Works within whichever list holds the node (the root list or a container's
    children). At a list boundary the tree is returned unchanged.
    """

    if direction not in ("up", "down"):
        raise ValueError(f"Unsupported move direction: {direction}")

    index = next((idx for idx, node in enumerate(root) if node.id == node_id), None)
    if index is not None:
        return _swap_with_sibling(list(root), index, direction)

    result: List[ComponentNode] = []
    for node in root:
        if node.children:
            result.append(node.model_copy(update={"children": move(node_id, direction, node.children)}))
        else:
            result.append(node)
    return result


def append(new_node: ComponentNode, root: Sequence[ComponentNode]) -> List[ComponentNode]:
    """Add ``new_node`` as the last top-level sibling."""

    _ensure_unique(new_node, root)
    return [*root, new_node]


def insert_into(
    container_id: str,
    new_node: ComponentNode,
    root: Sequence[ComponentNode],
) -> List[ComponentNode]:
    """Append ``new_node`` as the last child of ``container_id``.

    Whether the container's kind accepts children is not checked here.
    """

    container = find(container_id, root)
    if container is None:
        return list(root)
    _ensure_unique(new_node, root)
    updated = container.model_copy(update={"children": [*container.children, new_node]})
    return update(container_id, updated, root)


def with_fresh_ids(node: ComponentNode, id_factory: IdFactory) -> ComponentNode:
    """Deep copy of ``node`` where every id in the subtree is regenerated."""

    return ComponentNode(
        id=id_factory(node.kind),
        kind=node.kind,
        properties=dict(node.properties),
        children=[with_fresh_ids(child, id_factory) for child in node.children],
        hidden=node.hidden,
    )


def _ensure_unique(new_node: ComponentNode, root: Sequence[ComponentNode]) -> None:
    incoming = [node.id for node in iter_nodes([new_node])]
    if len(incoming) != len(set(incoming)):
        raise DuplicateNodeError(f"Node {new_node.id} repeats an id inside its own subtree")
    clashes = collect_ids(root).intersection(incoming)
    if clashes:
        raise DuplicateNodeError(f"Node id already present in tree: {sorted(clashes)[0]}")


def _swap_with_sibling(siblings: List[ComponentNode], index: int, direction: Direction) -> List[ComponentNode]:
    target = index - 1 if direction == "up" else index + 1
    if target < 0 or target >= len(siblings):
        return siblings
    siblings[index], siblings[target] = siblings[target], siblings[index]
    return siblings
