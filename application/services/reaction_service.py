"""
表态应用服务
"""
from typing import Callable, List, Optional, Tuple

from application.context import AuthContext
from application.dto import (
    PaginationParams,
    ReactionResultDTO,
    ReactionSummaryDTO,
    ReactionUserDTO,
)
from application.services.article_service import can_view
from core.logging_config import get_logger
from domain.common.exceptions import ArticleNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.reaction.entity import ReactionSummary
from domain.reaction.service import ReactionDomainService


logger = get_logger(__name__)


def _summary_fields(article_id: int, summary: ReactionSummary) -> dict:
    return {
        "article_id": article_id,
        "counts": dict(summary.counts),
        "total": summary.total,
        "user_reaction": summary.user_reaction.value if summary.user_reaction else None,
    }


class ReactionApplicationService:

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]):
        self._uow_factory = uow_factory

    async def _ensure_article(self, uow: AbstractUnitOfWork, article_id: int,
                              ctx: Optional[AuthContext]) -> None:
        article = await uow.article_repository.get_by_id(article_id)
        if article is None or not can_view(article, ctx):
            raise ArticleNotFoundException(article_id)

    async def set_reaction(self, ctx: AuthContext, article_id: int, reaction_type: str) -> ReactionResultDTO:
        """无表态则新增，同类型则取消，不同类型则替换"""
        async with self._uow_factory() as uow:
            await self._ensure_article(uow, article_id, ctx)
            result = await ReactionDomainService(uow.reaction_repository).set_reaction(
                article_id, ctx.user_id, reaction_type
            )
        logger.info("reaction_set", article_id=article_id, user_id=ctx.user_id,
                    type=reaction_type, outcome=result.outcome.value)
        return ReactionResultDTO(outcome=result.outcome.value, **_summary_fields(article_id, result.summary))

    async def get_summary(self, ctx: Optional[AuthContext], article_id: int) -> ReactionSummaryDTO:
        async with self._uow_factory(readonly=True) as uow:
            await self._ensure_article(uow, article_id, ctx)
            summary = await ReactionDomainService(uow.reaction_repository).summary(
                article_id, ctx.user_id if ctx else None
            )
        return ReactionSummaryDTO(**_summary_fields(article_id, summary))

    async def list_reactions(self, ctx: Optional[AuthContext], article_id: int,
                             params: PaginationParams) -> Tuple[List[ReactionUserDTO], int]:
        async with self._uow_factory(readonly=True) as uow:
            await self._ensure_article(uow, article_id, ctx)
            repo = uow.reaction_repository
            reactions = await repo.list_for_article(article_id, skip=params.skip, limit=params.limit)
            total = await repo.count_for_article(article_id)
            users = await uow.user_repository.get_by_ids(sorted({r.user_id for r in reactions}))

        items = []
        for reaction in reactions:
            user = users.get(reaction.user_id)
            items.append(ReactionUserDTO(
                user_id=reaction.user_id,
                username=user.username if user else None,
                avatar_url=user.avatar_url if user else None,
                type=reaction.type.value,
                created_at=reaction.created_at,
            ))
        return items, total
