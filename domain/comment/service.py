"""
评论领域服务 - 回复层级限制
"""
from typing import Optional

from domain.common.exceptions import (
    CommentDepthExceededException,
    CommentNotFoundException,
    DomainValidationException,
)
from .entity import Comment
from .repository import CommentRepository


DEFAULT_MAX_DEPTH = 3


class CommentDomainService:
    """评论领域服务"""

    def __init__(self, comment_repository: CommentRepository, max_depth: int = DEFAULT_MAX_DEPTH):
        self.comment_repository = comment_repository
        self.max_depth = max_depth

    async def depth_of(self, comment: Comment) -> int:
        """沿 parent_id 向上计算层级，根评论为 1"""
        depth = 1
        seen = {comment.id}
        current = comment
        while current.parent_id is not None and current.parent_id not in seen:
            parent = await self.comment_repository.get_by_id(current.parent_id)
            if parent is None:
                break
            seen.add(parent.id)
            depth += 1
            current = parent
        return depth

    async def ensure_reply_depth(self, parent: Comment) -> int:
        """新回复的层级超过上限时拒绝；返回新回复的层级"""
        depth = await self.depth_of(parent) + 1
        if depth > self.max_depth:
            raise CommentDepthExceededException(self.max_depth)
        return depth

    async def create_comment(
        self,
        article_id: int,
        user_id: int,
        content: str,
        parent_id: Optional[int] = None,
    ) -> Comment:
        """创建评论或回复"""
        comment = Comment(
            id=None,
            article_id=article_id,
            user_id=user_id,
            content=content,
            parent_id=parent_id,
        )
        if parent_id is not None:
            parent = await self.comment_repository.get_by_id(parent_id)
            if parent is None:
                raise CommentNotFoundException(parent_id)
            if parent.article_id != article_id:
                raise DomainValidationException(
                    "Parent comment belongs to another article", field="parent_id"
                )
            await self.ensure_reply_depth(parent)
        return await self.comment_repository.create(comment)
