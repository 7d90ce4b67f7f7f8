"""Comment domain exports."""
from .entity import Comment, CommentVisibility
from .repository import CommentRepository
from .tree import CommentNode, build_comment_tree, collect_descendant_ids, count_nodes

__all__ = [
    "Comment",
    "CommentVisibility",
    "CommentRepository",
    "CommentNode",
    "build_comment_tree",
    "collect_descendant_ids",
    "count_nodes",
]
