from dataclasses import dataclass
from typing import Optional

from domain.comment.tree import build_comment_tree, collect_descendant_ids, count_nodes


@dataclass
class Item:
    id: int
    parent_id: Optional[int] = None


def test_tree_keeps_input_order_per_level():
    items = [Item(1), Item(2), Item(3, 1), Item(4, 3), Item(5, 1)]
    forest = build_comment_tree(items)

    assert [n.item.id for n in forest] == [1, 2]
    assert [n.item.id for n in forest[0].children] == [3, 5]
    assert [n.item.id for n in forest[0].children[0].children] == [4]
    assert count_nodes(forest) == 5


def test_orphans_and_their_replies_are_dropped():
    # 7 的父评论不在列表里，8 挂在 7 下面，也一起丢弃
    items = [Item(1), Item(7, 99), Item(8, 7)]
    forest = build_comment_tree(items)

    assert [n.item.id for n in forest] == [1]
    assert count_nodes(forest) == 1


def test_empty_input():
    assert build_comment_tree([]) == []
    assert collect_descendant_ids([], []) == []


def test_descendants_breadth_first_including_roots():
    items = [Item(1), Item(2, 1), Item(3, 1), Item(4, 2), Item(5), Item(6, 5)]
    assert collect_descendant_ids(items, [1]) == [1, 2, 3, 4]
    assert collect_descendant_ids(items, [5, 1]) == [5, 1, 6, 2, 3, 4]


def test_descendants_deduplicate_overlapping_roots():
    items = [Item(1), Item(2, 1), Item(3, 2)]
    assert collect_descendant_ids(items, [1, 2]) == [1, 2, 3]
