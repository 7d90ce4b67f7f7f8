"""
管理后台应用服务 - 统计、用户管理（封禁/角色/删除）、文章审核与内容清理
"""
from typing import Callable, List, Optional, Tuple

from application.context import AuthContext
from application.dto import (
    ArticleResponseDTO,
    BanUserDTO,
    BatchDeleteResultDTO,
    CommentWithArticleDTO,
    DeleteReportDTO,
    PaginationParams,
    ReviewDTO,
    StatsDTO,
    UserResponseDTO,
    UserWithStatsDTO,
    VisibilityDTO,
)
from application.ports.storage import StoragePort
from application.services.article_service import assemble_articles, parse_status_filter
from application.services.comment_service import comments_with_titles
from application.services.user_service import to_report_dto, to_user_dto
from application.utils.storage import release_covers, remove_stored_files
from core.logging_config import get_logger
from domain.article.entity import Article
from domain.comment.entity import Comment
from domain.common.exceptions import (
    ArticleNotFoundException,
    CommentNotFoundException,
    PermissionDeniedException,
    UserNotFoundException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.services.cascade_delete import CascadeDeleteService, CascadeOptions
from domain.user.entity import User, UserRole, UserStatus
from domain.user.service import UserDomainService


logger = get_logger(__name__)


class AdminApplicationService:
    """管理后台应用服务；调用方需确保当前用户为管理员"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], storage: Optional[StoragePort] = None):
        self._uow_factory = uow_factory
        self._storage = storage

    # ------------------------------------------------------------------
    # 统计
    # ------------------------------------------------------------------
    async def get_stats(self) -> StatsDTO:
        async with self._uow_factory(readonly=True) as uow:
            users = uow.user_repository
            user_stats = {
                "total": await users.count_all(),
                "active": await users.count_all(status=UserStatus.ACTIVE),
                "banned": await users.count_all(status=UserStatus.BANNED),
                "admins": await users.count_admins(),
            }
            by_status = await uow.article_repository.count_by_status()
            article_stats = {
                "total": sum(by_status.values()),
                **by_status,
                "total_views": await uow.article_repository.total_views(),
            }
            by_visibility = await uow.comment_repository.count_by_visibility()
            comment_stats = {"total": sum(by_visibility.values()), **by_visibility}
            reactions = await uow.reaction_repository.count_all()
        return StatsDTO(users=user_stats, articles=article_stats, comments=comment_stats, reactions=reactions)

    # ------------------------------------------------------------------
    # 用户管理
    # ------------------------------------------------------------------
    async def _get_user(self, uow: AbstractUnitOfWork, user_id: int) -> User:
        user = await uow.user_repository.get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    @staticmethod
    def _with_stats(user: User, counts: Tuple[int, int]) -> UserWithStatsDTO:
        dto = UserWithStatsDTO.model_validate(user)
        dto.article_count, dto.comment_count = counts
        return dto

    async def list_users(
        self,
        params: PaginationParams,
        search: Optional[str] = None,
        role: Optional[UserRole] = None,
        status: Optional[UserStatus] = None,
    ) -> Tuple[List[UserWithStatsDTO], int]:
        async with self._uow_factory(readonly=True) as uow:
            repo = uow.user_repository
            users = await repo.get_all(skip=params.skip, limit=params.limit,
                                       search=search, role=role, status=status)
            total = await repo.count_all(search=search, role=role, status=status)
            counts = await repo.content_counts([u.id for u in users])
        return [self._with_stats(u, counts.get(u.id, (0, 0))) for u in users], total

    async def get_user(self, user_id: int) -> UserWithStatsDTO:
        async with self._uow_factory(readonly=True) as uow:
            user = await self._get_user(uow, user_id)
            counts = await uow.user_repository.content_counts([user.id])
        return self._with_stats(user, counts.get(user.id, (0, 0)))

    async def delete_user(self, ctx: AuthContext, user_id: int, options: CascadeOptions) -> DeleteReportDTO:
        if user_id == ctx.user_id:
            raise PermissionDeniedException("Use account deletion to remove your own account")
        async with self._uow_factory() as uow:
            user = await self._get_user(uow, user_id)
            report = await CascadeDeleteService(uow).delete_user(user, options)

        await release_covers(self._uow_factory, self._storage, report.covers_to_remove, logger)
        await remove_stored_files(self._storage, report.avatars_to_remove, logger, kind="avatars")
        logger.info(
            "admin_user_deleted",
            admin_id=ctx.user_id,
            user_id=user_id,
            delete_articles=options.delete_articles,
            delete_comments=options.delete_comments,
        )
        return to_report_dto(report)

    async def ban_user(self, ctx: AuthContext, user_id: int, data: BanUserDTO) -> UserResponseDTO:
        if user_id == ctx.user_id:
            raise PermissionDeniedException("Administrators cannot ban themselves")
        async with self._uow_factory() as uow:
            user = await self._get_user(uow, user_id)
            user.ban(data.reason, data.duration_hours)
            user = await uow.user_repository.update(user)
        logger.info("user_banned", admin_id=ctx.user_id, user_id=user_id,
                    duration_hours=data.duration_hours, expire_at=user.ban_expire_at.isoformat())
        return to_user_dto(user)

    async def unban_user(self, ctx: AuthContext, user_id: int) -> UserResponseDTO:
        async with self._uow_factory() as uow:
            user = await self._get_user(uow, user_id)
            user.unban()
            user = await uow.user_repository.update(user)
        logger.info("user_unbanned", admin_id=ctx.user_id, user_id=user_id)
        return to_user_dto(user)

    async def set_role(self, ctx: AuthContext, user_id: int, role: UserRole) -> UserResponseDTO:
        """修改角色；降级最后一名管理员会被拒绝"""
        async with self._uow_factory() as uow:
            user = await self._get_user(uow, user_id)
            user = await UserDomainService(uow.user_repository).change_role(user, role)
        logger.info("user_role_changed", admin_id=ctx.user_id, user_id=user_id, role=user.role.value)
        return to_user_dto(user)

    async def promote(self, ctx: AuthContext, user_id: int) -> UserResponseDTO:
        return await self.set_role(ctx, user_id, UserRole.ADMIN)

    async def demote(self, ctx: AuthContext, user_id: int) -> UserResponseDTO:
        return await self.set_role(ctx, user_id, UserRole.USER)

    # ------------------------------------------------------------------
    # 文章管理
    # ------------------------------------------------------------------
    async def _get_article(self, uow: AbstractUnitOfWork, article_id: int) -> Article:
        article = await uow.article_repository.get_by_id(article_id)
        if article is None:
            raise ArticleNotFoundException(article_id)
        return article

    async def list_articles(self, params: PaginationParams, status: Optional[str] = None,
                            search: Optional[str] = None) -> Tuple[List[ArticleResponseDTO], int]:
        statuses = parse_status_filter(status)
        async with self._uow_factory(readonly=True) as uow:
            repo = uow.article_repository
            articles = await repo.list(skip=params.skip, limit=params.limit, search=search, statuses=statuses)
            total = await repo.count(search=search, statuses=statuses)
            return await assemble_articles(uow, articles), total

    async def get_article(self, article_id: int) -> ArticleResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            article = await self._get_article(uow, article_id)
            return (await assemble_articles(uow, [article]))[0]

    async def review_article(self, ctx: AuthContext, article_id: int, data: ReviewDTO) -> ArticleResponseDTO:
        """审核：published 或 rejected（驳回需要原因）"""
        async with self._uow_factory() as uow:
            article = await self._get_article(uow, article_id)
            article.review(data.status, data.reason)
            article = await uow.article_repository.update(article)
            dto = (await assemble_articles(uow, [article]))[0]
        logger.info("article_reviewed", admin_id=ctx.user_id, article_id=article_id, status=dto.status.value)
        return dto

    async def delete_article(self, ctx: AuthContext, article_id: int) -> None:
        async with self._uow_factory() as uow:
            report = await CascadeDeleteService(uow).delete_article(article_id)
        await release_covers(self._uow_factory, self._storage, report.covers_to_remove, logger)
        logger.info("admin_article_deleted", admin_id=ctx.user_id, article_id=article_id)

    async def batch_delete_articles(self, ctx: AuthContext, article_ids: List[int]) -> BatchDeleteResultDTO:
        """同一事务内批量删除，不存在的ID跳过"""
        async with self._uow_factory() as uow:
            report = await CascadeDeleteService(uow).delete_articles(article_ids)
        await release_covers(self._uow_factory, self._storage, report.covers_to_remove, logger)
        logger.info("admin_articles_batch_deleted", admin_id=ctx.user_id,
                    requested=len(article_ids), deleted=report.articles_deleted)
        return BatchDeleteResultDTO(requested=len(article_ids), deleted=report.articles_deleted)

    # ------------------------------------------------------------------
    # 评论管理
    # ------------------------------------------------------------------
    async def _get_comment(self, uow: AbstractUnitOfWork, comment_id: int) -> Comment:
        comment = await uow.comment_repository.get_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundException(comment_id)
        return comment

    async def list_comments(self, params: PaginationParams) -> Tuple[List[CommentWithArticleDTO], int]:
        async with self._uow_factory(readonly=True) as uow:
            comments = await uow.comment_repository.list_all(skip=params.skip, limit=params.limit)
            total = await uow.comment_repository.count_all()
            return await comments_with_titles(uow, comments), total

    async def delete_comment(self, ctx: AuthContext, comment_id: int) -> int:
        async with self._uow_factory() as uow:
            await self._get_comment(uow, comment_id)
            deleted = await CascadeDeleteService(uow).delete_comments([comment_id])
        logger.info("admin_comment_deleted", admin_id=ctx.user_id, comment_id=comment_id, deleted=deleted)
        return deleted

    async def toggle_comment_visibility(self, ctx: AuthContext, comment_id: int) -> VisibilityDTO:
        async with self._uow_factory() as uow:
            comment = await self._get_comment(uow, comment_id)
            comment.toggle_visibility()
            comment = await uow.comment_repository.update(comment)
        logger.info("admin_comment_visibility_changed", admin_id=ctx.user_id,
                    comment_id=comment_id, visibility=comment.visibility.value)
        return VisibilityDTO(id=comment.id, visibility=comment.visibility)

    async def batch_delete_comments(self, ctx: AuthContext, comment_ids: List[int]) -> BatchDeleteResultDTO:
        """批量删除评论，回复一并删除；返回实际删除的行数"""
        async with self._uow_factory() as uow:
            deleted = await CascadeDeleteService(uow).delete_comments(comment_ids)
        logger.info("admin_comments_batch_deleted", admin_id=ctx.user_id,
                    requested=len(comment_ids), deleted=deleted)
        return BatchDeleteResultDTO(requested=len(comment_ids), deleted=deleted)
