"""
表态领域服务 - 切换语义：
无表态则新增；同类型再次表态则取消；不同类型则替换。
"""
from typing import Optional

from domain.common.exceptions import DomainValidationException
from .entity import (
    Reaction,
    ReactionOutcome,
    ReactionResult,
    ReactionSummary,
    ReactionType,
)
from .repository import ReactionRepository


def parse_reaction_type(value) -> ReactionType:
    try:
        return ReactionType(value)
    except ValueError:
        raise DomainValidationException(
            "Invalid reaction type",
            field="type",
            details={"allowed": [t.value for t in ReactionType]},
        ) from None


class ReactionDomainService:

    def __init__(self, reaction_repository: ReactionRepository):
        self.reaction_repository = reaction_repository

    async def set_reaction(self, article_id: int, user_id: int, reaction_type) -> ReactionResult:
        reaction_type = parse_reaction_type(reaction_type)
        existing = await self.reaction_repository.get(article_id, user_id)

        if existing is None:
            await self.reaction_repository.create(
                Reaction(id=None, article_id=article_id, user_id=user_id, type=reaction_type)
            )
            outcome, current = ReactionOutcome.ADDED, reaction_type
        elif existing.type == reaction_type:
            await self.reaction_repository.delete(existing.id)
            outcome, current = ReactionOutcome.REMOVED, None
        else:
            await self.reaction_repository.update_type(existing.id, reaction_type)
            outcome, current = ReactionOutcome.UPDATED, reaction_type

        counts = await self.reaction_repository.counts(article_id)
        return ReactionResult(outcome=outcome, summary=ReactionSummary(counts=counts, user_reaction=current))

    async def summary(self, article_id: int, user_id: Optional[int] = None) -> ReactionSummary:
        counts = await self.reaction_repository.counts(article_id)
        user_reaction = None
        if user_id is not None:
            existing = await self.reaction_repository.get(article_id, user_id)
            user_reaction = existing.type if existing else None
        return ReactionSummary(counts=counts, user_reaction=user_reaction)
