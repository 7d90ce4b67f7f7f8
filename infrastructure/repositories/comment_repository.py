"""评论仓储实现"""
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.comment.entity import Comment, CommentVisibility
from domain.comment.repository import CommentRepository
from infrastructure.models.comment import CommentModel


class SQLAlchemyCommentRepository(CommentRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: CommentModel) -> Comment:
        return Comment(
            id=model.id,
            article_id=model.article_id,
            user_id=model.user_id,
            content=model.content,
            parent_id=model.parent_id,
            visibility=model.visibility,
            created_at=model.created_at,
        )

    async def _fetch(self, query) -> List[Comment]:
        result = await self.session.execute(query)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def create(self, comment: Comment) -> Comment:
        model = CommentModel(
            article_id=comment.article_id,
            user_id=comment.user_id,
            content=comment.content,
            parent_id=comment.parent_id,
            visibility=comment.visibility.value,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_entity(model)

    async def get_by_id(self, comment_id: int) -> Optional[Comment]:
        result = await self.session.execute(select(CommentModel).where(CommentModel.id == comment_id))
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def update(self, comment: Comment) -> Comment:
        result = await self.session.execute(select(CommentModel).where(CommentModel.id == comment.id))
        model = result.scalar_one()
        model.content = comment.content
        model.visibility = comment.visibility.value
        await self.session.flush()
        return self._to_entity(model)

    async def list_by_article(self, article_id: int) -> List[Comment]:
        return await self._fetch(
            select(CommentModel)
            .where(CommentModel.article_id == article_id)
            .order_by(CommentModel.created_at.asc(), CommentModel.id.asc())
        )

    async def list_by_articles(self, article_ids: List[int]) -> List[Comment]:
        if not article_ids:
            return []
        return await self._fetch(
            select(CommentModel)
            .where(CommentModel.article_id.in_(article_ids))
            .order_by(CommentModel.id.asc())
        )

    def _replies_filter(self, query, article_id: int, parent_id: Optional[int]):
        query = query.where(CommentModel.article_id == article_id)
        if parent_id is None:
            return query.where(CommentModel.parent_id.is_(None))
        return query.where(CommentModel.parent_id == parent_id)

    async def list_replies(self, article_id: int, parent_id: Optional[int],
                           skip: int = 0, limit: int = 10) -> List[Comment]:
        query = self._replies_filter(select(CommentModel), article_id, parent_id)
        return await self._fetch(
            query.order_by(CommentModel.created_at.asc(), CommentModel.id.asc()).offset(skip).limit(limit)
        )

    async def count_replies(self, article_id: int, parent_id: Optional[int]) -> int:
        query = self._replies_filter(select(func.count()).select_from(CommentModel), article_id, parent_id)
        result = await self.session.execute(query)
        return int(result.scalar() or 0)

    def _user_filter(self, query, user_id: int, visible_only: bool):
        query = query.where(CommentModel.user_id == user_id)
        if visible_only:
            query = query.where(CommentModel.visibility == CommentVisibility.VISIBLE.value)
        return query

    async def list_by_user(self, user_id: int, skip: int = 0, limit: int = 10,
                           visible_only: bool = False) -> List[Comment]:
        query = self._user_filter(select(CommentModel), user_id, visible_only)
        return await self._fetch(
            query.order_by(CommentModel.created_at.desc(), CommentModel.id.desc()).offset(skip).limit(limit)
        )

    async def count_by_user(self, user_id: int, visible_only: bool = False) -> int:
        query = self._user_filter(select(func.count()).select_from(CommentModel), user_id, visible_only)
        result = await self.session.execute(query)
        return int(result.scalar() or 0)

    async def list_all(self, skip: int = 0, limit: int = 10) -> List[Comment]:
        return await self._fetch(
            select(CommentModel)
            .order_by(CommentModel.created_at.desc(), CommentModel.id.desc())
            .offset(skip).limit(limit)
        )

    async def count_all(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(CommentModel))
        return int(result.scalar() or 0)

    async def ids_by_user(self, user_id: int) -> List[int]:
        result = await self.session.execute(
            select(CommentModel.id).where(CommentModel.user_id == user_id).order_by(CommentModel.id)
        )
        return list(result.scalars().all())

    async def delete_many(self, comment_ids: List[int]) -> int:
        if not comment_ids:
            return 0
        result = await self.session.execute(delete(CommentModel).where(CommentModel.id.in_(comment_ids)))
        return result.rowcount

    async def delete_by_articles(self, article_ids: List[int]) -> int:
        if not article_ids:
            return 0
        result = await self.session.execute(
            delete(CommentModel).where(CommentModel.article_id.in_(article_ids))
        )
        return result.rowcount

    async def orphan_by_user(self, user_id: int) -> int:
        result = await self.session.execute(
            update(CommentModel)
            .where(CommentModel.user_id == user_id)
            .values(user_id=None)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_by_visibility(self) -> dict[str, int]:
        result = await self.session.execute(
            select(CommentModel.visibility, func.count()).group_by(CommentModel.visibility)
        )
        counts = {v.value: 0 for v in CommentVisibility}
        counts.update({visibility: int(n) for visibility, n in result.all()})
        return counts
