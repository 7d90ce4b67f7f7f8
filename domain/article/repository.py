"""
文章仓储接口
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from .entity import Article, ArticleStatus


class ArticleRepository(ABC):
    """文章仓储抽象接口"""

    @abstractmethod
    async def create(self, article: Article) -> Article:
        """创建文章"""

    @abstractmethod
    async def get_by_id(self, article_id: int) -> Optional[Article]:
        """根据ID获取文章"""

    @abstractmethod
    async def list(
        self,
        skip: int = 0,
        limit: int = 10,
        *,
        search: Optional[str] = None,
        statuses: Optional[List[ArticleStatus]] = None,
        author_id: Optional[int] = None,
        tag: Optional[str] = None,
        sort: str = "created_at",
        order: str = "desc",
    ) -> List[Article]:
        """分页查询文章；statuses 为 None 时不过滤状态"""

    @abstractmethod
    async def count(
        self,
        *,
        search: Optional[str] = None,
        statuses: Optional[List[ArticleStatus]] = None,
        author_id: Optional[int] = None,
        tag: Optional[str] = None,
    ) -> int:
        """统计文章数量"""

    @abstractmethod
    async def update(self, article: Article) -> Article:
        """更新文章"""

    @abstractmethod
    async def delete(self, article_id: int) -> bool:
        """删除文章行"""

    @abstractmethod
    async def increment_view_count(self, article_id: int) -> Optional[int]:
        """原子地将浏览量加一，返回新值"""

    @abstractmethod
    async def ids_by_author(self, author_id: int) -> List[int]:
        """作者的全部文章ID"""

    @abstractmethod
    async def orphan_by_author(self, author_id: int) -> int:
        """清空作者并将文章状态置为 pending"""

    @abstractmethod
    async def comment_counts(self, article_ids: List[int]) -> dict[int, int]:
        """批量统计评论数"""

    @abstractmethod
    async def titles(self, article_ids: List[int]) -> dict[int, str]:
        """批量获取标题"""

    @abstractmethod
    async def image_urls_in_use(self, urls: List[str]) -> set[str]:
        """仍被某篇文章用作封面的URL"""

    @abstractmethod
    async def count_by_status(self) -> dict[str, int]:
        """按状态统计文章数"""

    @abstractmethod
    async def total_views(self) -> int:
        """总浏览量"""
