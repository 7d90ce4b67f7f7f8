"""
文章仓储实现
"""
from typing import List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.article.entity import Article, ArticleStatus
from domain.article.repository import ArticleRepository
from infrastructure.models.article import ArticleModel, ArticleTagModel, TagModel
from infrastructure.models.comment import CommentModel


_SORT_COLUMNS = {
    "created_at": ArticleModel.created_at,
    "view_count": ArticleModel.view_count,
    "updated_at": ArticleModel.updated_at,
}


class SQLAlchemyArticleRepository(ArticleRepository):
    """文章仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ArticleModel) -> Article:
        return Article(
            id=model.id,
            title=model.title,
            content=model.content,
            author_id=model.author_id,
            status=model.status,
            html_content=model.html_content,
            image_url=model.image_url,
            view_count=model.view_count or 0,
            review_reason=model.review_reason,
            reviewed_at=model.reviewed_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _filtered(self, query, search, statuses, author_id, tag):
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(ArticleModel.title.like(pattern), ArticleModel.content.like(pattern)))
        if statuses is not None:
            query = query.where(ArticleModel.status.in_([ArticleStatus(s).value for s in statuses]))
        if author_id is not None:
            query = query.where(ArticleModel.author_id == author_id)
        if tag:
            tagged = (
                select(ArticleTagModel.article_id)
                .join(TagModel, TagModel.id == ArticleTagModel.tag_id)
                .where(TagModel.name == tag)
            )
            query = query.where(ArticleModel.id.in_(tagged))
        return query

    async def create(self, article: Article) -> Article:
        model = ArticleModel(
            title=article.title,
            content=article.content,
            html_content=article.html_content,
            image_url=article.image_url,
            status=article.status.value,
            author_id=article.author_id,
            view_count=article.view_count,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, article_id: int) -> Optional[Article]:
        result = await self.session.execute(select(ArticleModel).where(ArticleModel.id == article_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

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
        column = _SORT_COLUMNS.get(sort, ArticleModel.created_at)
        ordering = column.asc() if order == "asc" else column.desc()
        tie_breaker = ArticleModel.id.asc() if order == "asc" else ArticleModel.id.desc()
        query = self._filtered(select(ArticleModel), search, statuses, author_id, tag)
        query = query.order_by(ordering, tie_breaker).offset(skip).limit(limit)
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count(
        self,
        *,
        search: Optional[str] = None,
        statuses: Optional[List[ArticleStatus]] = None,
        author_id: Optional[int] = None,
        tag: Optional[str] = None,
    ) -> int:
        query = self._filtered(select(func.count()).select_from(ArticleModel), search, statuses, author_id, tag)
        result = await self.session.execute(query)
        return int(result.scalar() or 0)

    async def update(self, article: Article) -> Article:
        result = await self.session.execute(select(ArticleModel).where(ArticleModel.id == article.id))
        model = result.scalar_one()
        model.title = article.title
        model.content = article.content
        model.html_content = article.html_content
        model.image_url = article.image_url
        model.status = article.status.value
        model.review_reason = article.review_reason
        model.reviewed_at = article.reviewed_at
        model.author_id = article.author_id
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_entity(model)

    async def delete(self, article_id: int) -> bool:
        result = await self.session.execute(delete(ArticleModel).where(ArticleModel.id == article_id))
        return result.rowcount > 0

    async def increment_view_count(self, article_id: int) -> Optional[int]:
        result = await self.session.execute(
            update(ArticleModel)
            .where(ArticleModel.id == article_id)
            .values(view_count=ArticleModel.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        value = await self.session.execute(
            select(ArticleModel.view_count).where(ArticleModel.id == article_id)
        )
        return int(value.scalar() or 0)

    async def ids_by_author(self, author_id: int) -> List[int]:
        result = await self.session.execute(
            select(ArticleModel.id).where(ArticleModel.author_id == author_id).order_by(ArticleModel.id)
        )
        return list(result.scalars().all())

    async def orphan_by_author(self, author_id: int) -> int:
        result = await self.session.execute(
            update(ArticleModel)
            .where(ArticleModel.author_id == author_id)
            .values(author_id=None, status=ArticleStatus.PENDING.value)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def comment_counts(self, article_ids: List[int]) -> dict[int, int]:
        if not article_ids:
            return {}
        result = await self.session.execute(
            select(CommentModel.article_id, func.count())
            .where(CommentModel.article_id.in_(article_ids))
            .group_by(CommentModel.article_id)
        )
        counts = {article_id: int(n) for article_id, n in result.all()}
        return {i: counts.get(i, 0) for i in article_ids}

    async def titles(self, article_ids: List[int]) -> dict[int, str]:
        if not article_ids:
            return {}
        result = await self.session.execute(
            select(ArticleModel.id, ArticleModel.title).where(ArticleModel.id.in_(article_ids))
        )
        return dict(result.all())

    async def image_urls_in_use(self, urls: List[str]) -> set[str]:
        if not urls:
            return set()
        result = await self.session.execute(
            select(ArticleModel.image_url).where(ArticleModel.image_url.in_(urls)).distinct()
        )
        return set(result.scalars().all())

    async def count_by_status(self) -> dict[str, int]:
        result = await self.session.execute(
            select(ArticleModel.status, func.count()).group_by(ArticleModel.status)
        )
        counts = {s.value: 0 for s in ArticleStatus}
        counts.update({status: int(n) for status, n in result.all()})
        return counts

    async def total_views(self) -> int:
        result = await self.session.execute(select(func.coalesce(func.sum(ArticleModel.view_count), 0)))
        return int(result.scalar() or 0)
