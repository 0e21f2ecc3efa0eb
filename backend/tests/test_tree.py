"""树构建测试"""
from types import SimpleNamespace

from devops.services.tree import build_tree


def node(item, children):
    return {"id": item.id, "children": children}


def item(id, parent_id=None):
    return SimpleNamespace(id=id, parent_id=parent_id)


def test_builds_nested_tree_in_input_order():
    items = [item(1), item(2, 1), item(3, 1), item(4, 2)]

    tree = build_tree(items, node)

    assert tree == [
        {"id": 1, "children": [
            {"id": 2, "children": [{"id": 4, "children": []}]},
            {"id": 3, "children": []},
        ]},
    ]


def test_missing_parent_becomes_root():
    tree = build_tree([item(1, 99), item(2)], node)
    assert [n["id"] for n in tree] == [1, 2]


def test_self_parent_is_root():
    tree = build_tree([item(1, 1)], node)
    assert tree == [{"id": 1, "children": []}]


def test_cycle_is_not_reachable():
    # 1 <-> 2 互为父节点，没有根
    tree = build_tree([item(1, 2), item(2, 1), item(3)], node)
    assert tree == [{"id": 3, "children": []}]
