"""Unit of Work 抽象定义"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.article.repository import ArticleRepository
from domain.comment.repository import CommentRepository
from domain.reaction.repository import ReactionRepository
from domain.tag.repository import TagRepository
from domain.user.repository import UserRepository


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象"""

    user_repository: UserRepository
    article_repository: ArticleRepository
    comment_repository: CommentRepository
    tag_repository: TagRepository
    reaction_repository: ReactionRepository

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.user_repository = None  # type: ignore[assignment]
        self.article_repository = None  # type: ignore[assignment]
        self.comment_repository = None  # type: ignore[assignment]
        self.tag_repository = None  # type: ignore[assignment]
        self.reaction_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # 只在非只读且未显式提交时自动提交
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
        ...
