"""
评论仓储接口
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import Comment


class CommentRepository(ABC):
    """评论仓储抽象接口"""

    @abstractmethod
    async def create(self, comment: Comment) -> Comment:
        """创建评论"""

    @abstractmethod
    async def get_by_id(self, comment_id: int) -> Optional[Comment]:
        """根据ID获取评论"""

    @abstractmethod
    async def update(self, comment: Comment) -> Comment:
        """更新评论内容/可见性"""

    @abstractmethod
    async def list_by_article(self, article_id: int) -> List[Comment]:
        """文章下的全部评论，按创建顺序"""

    @abstractmethod
    async def list_by_articles(self, article_ids: List[int]) -> List[Comment]:
        """多篇文章下的全部评论（用于构建邻接表）"""

    @abstractmethod
    async def list_replies(self, article_id: int, parent_id: Optional[int],
                           skip: int = 0, limit: int = 10) -> List[Comment]:
        """直接回复（parent_id 为 None 时为根评论）"""

    @abstractmethod
    async def count_replies(self, article_id: int, parent_id: Optional[int]) -> int:
        """直接回复数量"""

    @abstractmethod
    async def list_by_user(self, user_id: int, skip: int = 0, limit: int = 10,
                           visible_only: bool = False) -> List[Comment]:
        """用户的评论，最新在前"""

    @abstractmethod
    async def count_by_user(self, user_id: int, visible_only: bool = False) -> int:
        """用户的评论数量"""

    @abstractmethod
    async def list_all(self, skip: int = 0, limit: int = 10) -> List[Comment]:
        """全部评论，最新在前（管理后台）"""

    @abstractmethod
    async def count_all(self) -> int:
        """评论总数"""

    @abstractmethod
    async def ids_by_user(self, user_id: int) -> List[int]:
        """用户的全部评论ID"""

    @abstractmethod
    async def delete_many(self, comment_ids: List[int]) -> int:
        """批量删除评论"""

    @abstractmethod
    async def delete_by_articles(self, article_ids: List[int]) -> int:
        """删除文章下的全部评论"""

    @abstractmethod
    async def orphan_by_user(self, user_id: int) -> int:
        """保留内容，清空评论的 user_id"""

    @abstractmethod
    async def count_by_visibility(self) -> dict[str, int]:
        """按可见性统计"""
