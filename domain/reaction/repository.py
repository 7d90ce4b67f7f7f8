"""表态仓储接口"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import Reaction, ReactionType


class ReactionRepository(ABC):

    @abstractmethod
    async def get(self, article_id: int, user_id: int) -> Optional[Reaction]:
        """用户对文章的表态"""

    @abstractmethod
    async def create(self, reaction: Reaction) -> Reaction:
        """新增表态"""

    @abstractmethod
    async def update_type(self, reaction_id: int, reaction_type: ReactionType) -> None:
        """修改表态类型"""

    @abstractmethod
    async def delete(self, reaction_id: int) -> bool:
        """删除表态"""

    @abstractmethod
    async def counts(self, article_id: int) -> dict[str, int]:
        """单篇文章各类型计数（缺失类型为 0）"""

    @abstractmethod
    async def counts_for_articles(self, article_ids: List[int]) -> dict[int, dict[str, int]]:
        """批量统计各类型计数"""

    @abstractmethod
    async def list_for_article(self, article_id: int, skip: int = 0, limit: int = 20) -> List[Reaction]:
        """文章的表态列表，最新在前"""

    @abstractmethod
    async def count_for_article(self, article_id: int) -> int:
        """文章的表态总数"""

    @abstractmethod
    async def delete_by_user(self, user_id: int) -> int:
        """删除用户的全部表态"""

    @abstractmethod
    async def delete_by_articles(self, article_ids: List[int]) -> int:
        """删除文章上的全部表态"""

    @abstractmethod
    async def count_all(self) -> int:
        """表态总数"""
