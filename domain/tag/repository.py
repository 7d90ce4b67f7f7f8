"""标签仓储接口"""
from abc import ABC, abstractmethod
from typing import List

from .entity import Tag


class TagRepository(ABC):

    @abstractmethod
    async def get_or_create_many(self, names: List[str]) -> List[Tag]:
        """按名称查找标签，不存在则创建"""

    @abstractmethod
    async def set_article_tags(self, article_id: int, names: List[str]) -> List[str]:
        """替换文章的标签关联"""

    @abstractmethod
    async def tags_for_articles(self, article_ids: List[int]) -> dict[int, List[str]]:
        """批量获取文章标签"""

    @abstractmethod
    async def delete_article_links(self, article_ids: List[int]) -> int:
        """删除文章与标签的关联"""
