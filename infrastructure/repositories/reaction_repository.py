"""表态仓储实现"""
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.reaction.entity import Reaction, ReactionType, empty_counts
from domain.reaction.repository import ReactionRepository
from infrastructure.models.comment import ReactionModel


class SQLAlchemyReactionRepository(ReactionRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: ReactionModel) -> Reaction:
        return Reaction(
            id=model.id,
            article_id=model.article_id,
            user_id=model.user_id,
            type=model.type,
            created_at=model.created_at,
        )

    async def get(self, article_id: int, user_id: int) -> Optional[Reaction]:
        result = await self.session.execute(
            select(ReactionModel).where(
                ReactionModel.article_id == article_id,
                ReactionModel.user_id == user_id,
            )
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def create(self, reaction: Reaction) -> Reaction:
        model = ReactionModel(
            article_id=reaction.article_id,
            user_id=reaction.user_id,
            type=reaction.type.value,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_entity(model)

    async def update_type(self, reaction_id: int, reaction_type: ReactionType) -> None:
        result = await self.session.execute(select(ReactionModel).where(ReactionModel.id == reaction_id))
        model = result.scalar_one()
        model.type = ReactionType(reaction_type).value
        await self.session.flush()

    async def delete(self, reaction_id: int) -> bool:
        result = await self.session.execute(delete(ReactionModel).where(ReactionModel.id == reaction_id))
        return result.rowcount > 0

    async def counts(self, article_id: int) -> dict[str, int]:
        return (await self.counts_for_articles([article_id]))[article_id]

    async def counts_for_articles(self, article_ids: List[int]) -> dict[int, dict[str, int]]:
        counts = {i: empty_counts() for i in article_ids}
        if not article_ids:
            return counts
        result = await self.session.execute(
            select(ReactionModel.article_id, ReactionModel.type, func.count())
            .where(ReactionModel.article_id.in_(article_ids))
            .group_by(ReactionModel.article_id, ReactionModel.type)
        )
        for article_id, reaction_type, n in result.all():
            counts[article_id][reaction_type] = int(n)
        return counts

    async def list_for_article(self, article_id: int, skip: int = 0, limit: int = 20) -> List[Reaction]:
        result = await self.session.execute(
            select(ReactionModel)
            .where(ReactionModel.article_id == article_id)
            .order_by(ReactionModel.created_at.desc(), ReactionModel.id.desc())
            .offset(skip).limit(limit)
        )
        return [self._to_entity(m) for m in result.scalars().all()]

    async def count_for_article(self, article_id: int) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(ReactionModel).where(ReactionModel.article_id == article_id)
        )
        return int(result.scalar() or 0)

    async def delete_by_user(self, user_id: int) -> int:
        result = await self.session.execute(delete(ReactionModel).where(ReactionModel.user_id == user_id))
        return result.rowcount

    async def delete_by_articles(self, article_ids: List[int]) -> int:
        if not article_ids:
            return 0
        result = await self.session.execute(
            delete(ReactionModel).where(ReactionModel.article_id.in_(article_ids))
        )
        return result.rowcount

    async def count_all(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(ReactionModel))
        return int(result.scalar() or 0)
