from __future__ import annotations

from typing import List

import pytest

from conftest import node
from widgetforge.core import tree
from widgetforge.core.errors import DuplicateNodeError
from widgetforge.core.tree import ComponentNode


def build_tree() -> List[ComponentNode]:
    return [
        node("label-1", text="Title"),
        node(
            "flex-1",
            "FlexBox",
            [
                node("button-1", "Button", text="Go"),
                node(
                    "fieldset-1",
                    "FieldSet",
                    [node("text-1", "TextField"), node("label-2"), node("label-3")],
                    legend="Details",
                ),
            ],
        ),
        node("chart-1", "Chart"),
    ]


def dump(root: List[ComponentNode]) -> list:
    return [item.model_dump() for item in root]


def ids_at(root: List[ComponentNode]) -> List[str]:
    return [item.id for item in root]


def test_find_returns_nested_node_and_none_for_absent_id() -> None:
    root = build_tree()

    assert tree.find("label-2", root).kind == "Label"
    assert tree.find("fieldset-1", root).properties == {"legend": "Details"}
    assert tree.find("missing", root) is None


def test_find_after_update_returns_replacement_and_input_is_untouched() -> None:
    root = build_tree()
    before = dump(root)
    replacement = node("text-1", "TextField", label="Email")

    updated = tree.update("text-1", replacement, root)

    assert tree.find("text-1", updated) == replacement
    assert ids_at(updated[1].children[1].children) == ["text-1", "label-2", "label-3"]
    assert dump(root) == before


def test_update_of_absent_id_is_silent() -> None:
    root = build_tree()

    assert dump(tree.update("missing", node("missing"), root)) == dump(root)


@pytest.mark.parametrize("target", ["label-1", "button-1", "label-2", "chart-1", "fieldset-1"])
def test_remove_deletes_node_everywhere(target: str) -> None:
    root = build_tree()

    result = tree.remove(target, root)

    assert target not in tree.collect_ids(result)
    assert len(tree.collect_ids(result)) < len(tree.collect_ids(root))


def test_remove_container_drops_its_subtree() -> None:
    result = tree.remove("flex-1", build_tree())

    assert ids_at(result) == ["label-1", "chart-1"]
    assert tree.find("text-1", result) is None


def test_remove_of_absent_id_returns_equal_tree() -> None:
    root = build_tree()

    assert dump(tree.remove("missing", root)) == dump(root)


def test_move_down_then_up_restores_tree() -> None:
    root = build_tree()

    moved = tree.move("label-2", "down", root)
    assert ids_at(moved[1].children[1].children) == ["text-1", "label-3", "label-2"]

    restored = tree.move("label-2", "up", moved)
    assert dump(restored) == dump(root)


def test_move_at_boundaries_is_a_no_op() -> None:
    root = build_tree()

    assert dump(tree.move("label-1", "up", root)) == dump(root)
    assert dump(tree.move("chart-1", "down", root)) == dump(root)
    assert dump(tree.move("text-1", "up", root)) == dump(root)
    assert dump(tree.move("label-3", "down", root)) == dump(root)


def test_move_at_root_level_swaps_siblings() -> None:
    moved = tree.move("chart-1", "up", build_tree())

    assert ids_at(moved) == ["label-1", "chart-1", "flex-1"]


def test_move_rejects_unknown_direction() -> None:
    with pytest.raises(ValueError):
        tree.move("label-1", "left", build_tree())  # type: ignore[arg-type]


def test_insert_into_appends_last_child() -> None:
    root = build_tree()

    result = tree.insert_into("fieldset-1", node("switch-1", "SwitchEnable"), root)

    assert ids_at(result[1].children[1].children) == ["text-1", "label-2", "label-3", "switch-1"]
    assert ids_at(root[1].children[1].children) == ["text-1", "label-2", "label-3"]


def test_insert_into_absent_container_leaves_tree_unchanged() -> None:
    root = build_tree()

    assert dump(tree.insert_into("missing", node("new-1"), root)) == dump(root)


def test_insert_rejects_duplicate_ids() -> None:
    root = build_tree()

    with pytest.raises(DuplicateNodeError):
        tree.insert_into("fieldset-1", node("button-1", "Button"), root)
    with pytest.raises(DuplicateNodeError):
        tree.append(node("wrapper", "FlexBox", [node("label-1")]), root)


def test_find_parent() -> None:
    root = build_tree()

    assert tree.find_parent("label-2", root).id == "fieldset-1"
    assert tree.find_parent("button-1", root).id == "flex-1"
    assert tree.find_parent("label-1", root) is None


def test_with_fresh_ids_regenerates_every_id() -> None:
    counter = iter(range(100))
    source = build_tree()[1]

    copy = tree.with_fresh_ids(source, lambda kind: f"{kind}-{next(counter)}")

    assert tree.collect_ids([copy]).isdisjoint(tree.collect_ids([source]))
    assert [item.kind for item in tree.iter_nodes([copy])] == [item.kind for item in tree.iter_nodes([source])]


def test_ensure_unique_ids_detects_repeats_at_any_depth() -> None:
    tree.ensure_unique_ids(build_tree())

    nested_repeat = [node("flex-1", "FlexBox", [node("label-1")]), node("label-1")]
    with pytest.raises(DuplicateNodeError):
        tree.ensure_unique_ids(nested_repeat)
