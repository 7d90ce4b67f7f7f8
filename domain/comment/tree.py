"""
评论树构建

评论表通过 parent_id 自引用，这里把一篇文章的扁平评论列表组装成嵌套结构，
并提供基于邻接表的广度优先后代收集（用于级联删除）。
"""
from collections import deque
from dataclasses import dataclass, field
from typing import Generic, Iterable, List, Optional, Protocol, Sequence, TypeVar


class _TreeItem(Protocol):
    id: Optional[int]
    parent_id: Optional[int]


T = TypeVar("T", bound=_TreeItem)


@dataclass
class CommentNode(Generic[T]):
    item: T
    children: List["CommentNode[T]"] = field(default_factory=list)


def build_comment_tree(items: Sequence[T]) -> List[CommentNode[T]]:
    """把扁平评论列表构建为森林。

    - 子节点顺序与输入顺序一致（即创建顺序）
    - parent_id 为 None 的是根节点
    - 父评论不在输入中的评论（连同其下的回复）被静默丢弃
    """
    nodes = {item.id: CommentNode(item) for item in items}
    roots: List[CommentNode[T]] = []
    for item in items:
        node = nodes[item.id]
        if item.parent_id is None:
            roots.append(node)
            continue
        parent = nodes.get(item.parent_id)
        if parent is not None:
            parent.children.append(node)
    return roots


def count_nodes(forest: Iterable[CommentNode]) -> int:
    """统计森林中的节点总数（含嵌套）"""
    total = 0
    stack = list(forest)
    while stack:
        node = stack.pop()
        total += 1
        stack.extend(node.children)
    return total


def collect_descendant_ids(items: Iterable[_TreeItem], root_ids: Iterable[int]) -> List[int]:
    """从 root_ids 出发广度优先收集全部后代，返回值包含 root_ids 本身"""
    children: dict[int, List[int]] = {}
    for item in items:
        if item.parent_id is not None:
            children.setdefault(item.parent_id, []).append(item.id)

    seen: set[int] = set()
    ordered: List[int] = []
    queue = deque(root_ids)
    while queue:
        current = queue.popleft()
        if current in seen:
            continue
        seen.add(current)
        ordered.append(current)
        queue.extend(children.get(current, ()))
    return ordered
