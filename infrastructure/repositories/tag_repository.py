"""标签仓储实现"""
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.tag.entity import Tag
from domain.tag.repository import TagRepository
from infrastructure.models.article import ArticleTagModel, TagModel


class SQLAlchemyTagRepository(TagRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_or_create_many(self, names: List[str]) -> List[Tag]:
        if not names:
            return []
        result = await self.session.execute(select(TagModel).where(TagModel.name.in_(names)))
        existing = {m.name: m for m in result.scalars().all()}
        for name in names:
            if name not in existing:
                model = TagModel(name=name)
                self.session.add(model)
                existing[name] = model
        await self.session.flush()
        return [Tag(id=existing[name].id, name=name) for name in names]

    async def set_article_tags(self, article_id: int, names: List[str]) -> List[str]:
        await self.session.execute(delete(ArticleTagModel).where(ArticleTagModel.article_id == article_id))
        tags = await self.get_or_create_many(names)
        for tag in tags:
            self.session.add(ArticleTagModel(article_id=article_id, tag_id=tag.id))
        await self.session.flush()
        return [tag.name for tag in tags]

    async def tags_for_articles(self, article_ids: List[int]) -> dict[int, List[str]]:
        if not article_ids:
            return {}
        result = await self.session.execute(
            select(ArticleTagModel.article_id, TagModel.name)
            .join(TagModel, TagModel.id == ArticleTagModel.tag_id)
            .where(ArticleTagModel.article_id.in_(article_ids))
            .order_by(ArticleTagModel.id)
        )
        tags: dict[int, List[str]] = {i: [] for i in article_ids}
        for article_id, name in result.all():
            tags[article_id].append(name)
        return tags

    async def delete_article_links(self, article_ids: List[int]) -> int:
        if not article_ids:
            return 0
        result = await self.session.execute(
            delete(ArticleTagModel).where(ArticleTagModel.article_id.in_(article_ids))
        )
        return result.rowcount
