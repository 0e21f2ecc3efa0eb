"""树形结构构建：一次遍历建立父子索引，再从根节点展开"""
from typing import Any, Callable, Dict, Hashable, List, Optional


def build_tree(
    items: List[Any],
    to_node: Callable[[Any, List[Any]], Any],
    get_id: Callable[[Any], Hashable] = lambda item: item.id,
    get_parent_id: Callable[[Any], Optional[Hashable]] = lambda item: item.parent_id,
) -> List[Any]:
    """
    将带 parent_id 的扁平列表构建为树

    父节点不存在（或为空）的条目作为根。输入顺序即兄弟节点顺序。
    环上的节点不可从根到达，因此不会出现在结果中。

    Args:
        items: 扁平实体列表
        to_node: (实体, 已构建的子节点列表) -> 节点
    """
    by_id: Dict[Hashable, Any] = {get_id(item): item for item in items}
    children: Dict[Hashable, List[Hashable]] = {key: [] for key in by_id}
    roots: List[Hashable] = []

    for item in items:
        parent_id = get_parent_id(item)
        if parent_id is not None and parent_id in by_id and parent_id != get_id(item):
            children[parent_id].append(get_id(item))
        else:
            roots.append(get_id(item))

    def expand(key: Hashable, seen: frozenset) -> Any:
        kids = [expand(child, seen | {child}) for child in children[key] if child not in seen]
        return to_node(by_id[key], kids)

    return [expand(key, frozenset([key])) for key in roots]
