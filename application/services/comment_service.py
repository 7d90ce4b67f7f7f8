"""
评论应用服务 - 评论树、回复层级、删除与显示状态切换
"""
from typing import Callable, List, Optional, Sequence, Tuple

from application.context import AuthContext
from application.dto import (
    AuthorDTO,
    CommentCreateDTO,
    CommentResponseDTO,
    CommentTreeDTO,
    CommentTreeNodeDTO,
    CommentWithArticleDTO,
    PaginationParams,
    VisibilityDTO,
)
from application.services.article_service import can_view
from core.config import settings
from core.logging_config import get_logger
from domain.article.entity import Article
from domain.comment.entity import Comment
from domain.comment.service import CommentDomainService
from domain.comment.tree import CommentNode, build_comment_tree, count_nodes
from domain.common.exceptions import (
    ArticleNotFoundException,
    CommentNotFoundException,
    DomainValidationException,
    PermissionDeniedException,
    UserNotFoundException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.services.cascade_delete import CascadeDeleteService


logger = get_logger(__name__)


async def author_map(uow: AbstractUnitOfWork, comments: Sequence[Comment]) -> dict[int, AuthorDTO]:
    user_ids = sorted({c.user_id for c in comments if c.user_id is not None})
    users = await uow.user_repository.get_by_ids(user_ids)
    return {
        uid: AuthorDTO(id=u.id, username=u.username, avatar_url=u.avatar_url)
        for uid, u in users.items()
    }


def to_comment_dto(comment: Comment, authors: dict[int, AuthorDTO],
                   dto_class=CommentResponseDTO, **extra) -> CommentResponseDTO:
    return dto_class(
        id=comment.id,
        article_id=comment.article_id,
        user_id=comment.user_id,
        parent_id=comment.parent_id,
        content=comment.content,
        visibility=comment.visibility,
        created_at=comment.created_at,
        author=authors.get(comment.user_id) if comment.user_id is not None else None,
        **extra,
    )


async def comments_with_titles(uow: AbstractUnitOfWork,
                               comments: Sequence[Comment]) -> List[CommentWithArticleDTO]:
    authors = await author_map(uow, comments)
    titles = await uow.article_repository.titles(sorted({c.article_id for c in comments}))
    return [
        to_comment_dto(c, authors, CommentWithArticleDTO, article_title=titles.get(c.article_id))
        for c in comments
    ]


class CommentApplicationService:
    """评论应用服务"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], max_depth: Optional[int] = None):
        self._uow_factory = uow_factory
        self._max_depth = max_depth or settings.COMMENT_MAX_DEPTH

    async def _visible_article(self, uow: AbstractUnitOfWork, article_id: int,
                               ctx: Optional[AuthContext]) -> Article:
        article = await uow.article_repository.get_by_id(article_id)
        if article is None or not can_view(article, ctx):
            raise ArticleNotFoundException(article_id)
        return article

    async def _get_or_404(self, uow: AbstractUnitOfWork, comment_id: int) -> Comment:
        comment = await uow.comment_repository.get_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundException(comment_id)
        return comment

    async def _ensure_can_moderate(self, uow: AbstractUnitOfWork, comment: Comment, ctx: AuthContext) -> None:
        """评论作者、文章作者或管理员"""
        if ctx.is_admin or comment.user_id == ctx.user_id:
            return
        article = await uow.article_repository.get_by_id(comment.article_id)
        if article is not None and article.is_owned_by(ctx.user_id):
            return
        raise PermissionDeniedException("Only the comment owner, the article author or an administrator can do this")

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------
    async def get_tree(self, ctx: Optional[AuthContext], article_id: int) -> CommentTreeDTO:
        async with self._uow_factory(readonly=True) as uow:
            await self._visible_article(uow, article_id, ctx)
            comments = await uow.comment_repository.list_by_article(article_id)
            authors = await author_map(uow, comments)

        forest = build_comment_tree(comments)
        dropped = len(comments) - count_nodes(forest)
        if dropped:
            logger.warning("comment_tree_orphans_dropped", article_id=article_id, dropped=dropped)

        def convert(node: CommentNode[Comment]) -> CommentTreeNodeDTO:
            return to_comment_dto(
                node.item, authors, CommentTreeNodeDTO,
                children=[convert(child) for child in node.children],
            )

        return CommentTreeDTO(
            article_id=article_id,
            total=len(comments) - dropped,
            comments=[convert(root) for root in forest],
        )

    async def list_replies(self, ctx: Optional[AuthContext], article_id: int, parent_id: Optional[int],
                           params: PaginationParams) -> Tuple[List[CommentResponseDTO], int]:
        """直接回复的扁平分页；parent_id 为空时返回顶层评论"""
        async with self._uow_factory(readonly=True) as uow:
            await self._visible_article(uow, article_id, ctx)
            repo = uow.comment_repository
            replies = await repo.list_replies(article_id, parent_id, skip=params.skip, limit=params.limit)
            total = await repo.count_replies(article_id, parent_id)
            authors = await author_map(uow, replies)
        return [to_comment_dto(c, authors) for c in replies], total

    async def get_comment(self, comment_id: int) -> CommentResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            comment = await self._get_or_404(uow, comment_id)
            authors = await author_map(uow, [comment])
        return to_comment_dto(comment, authors)

    async def list_user_comments(self, user_id: int,
                                 params: PaginationParams) -> Tuple[List[CommentWithArticleDTO], int]:
        """用户公开可见的评论，附带文章标题"""
        async with self._uow_factory(readonly=True) as uow:
            if await uow.user_repository.get_by_id(user_id) is None:
                raise UserNotFoundException(user_id)
            repo = uow.comment_repository
            comments = await repo.list_by_user(user_id, skip=params.skip, limit=params.limit, visible_only=True)
            total = await repo.count_by_user(user_id, visible_only=True)
            return await comments_with_titles(uow, comments), total

    # ------------------------------------------------------------------
    # 写操作
    # ------------------------------------------------------------------
    async def create_comment(self, ctx: AuthContext, data: CommentCreateDTO) -> CommentResponseDTO:
        """只能评论已发布的文章；回复受层级上限约束"""
        async with self._uow_factory() as uow:
            article = await uow.article_repository.get_by_id(data.article_id)
            if article is None:
                raise ArticleNotFoundException(data.article_id)
            if not article.is_published:
                raise DomainValidationException("Comments are only allowed on published articles",
                                                field="article_id")
            service = CommentDomainService(uow.comment_repository, max_depth=self._max_depth)
            comment = await service.create_comment(
                article_id=data.article_id,
                user_id=ctx.user_id,
                content=data.content,
                parent_id=data.parent_id,
            )
            authors = await author_map(uow, [comment])
        logger.info("comment_created", comment_id=comment.id, article_id=comment.article_id,
                    parent_id=comment.parent_id, user_id=ctx.user_id)
        return to_comment_dto(comment, authors)

    async def update_comment(self, ctx: AuthContext, comment_id: int, content: str) -> CommentResponseDTO:
        async with self._uow_factory() as uow:
            comment = await self._get_or_404(uow, comment_id)
            if comment.user_id != ctx.user_id:
                raise PermissionDeniedException("Only the comment owner can edit it")
            comment.edit(content)
            comment = await uow.comment_repository.update(comment)
            authors = await author_map(uow, [comment])
        logger.info("comment_updated", comment_id=comment_id, user_id=ctx.user_id)
        return to_comment_dto(comment, authors)

    async def delete_comment(self, ctx: AuthContext, comment_id: int) -> int:
        """删除评论及其全部回复，返回删除的条数"""
        async with self._uow_factory() as uow:
            comment = await self._get_or_404(uow, comment_id)
            await self._ensure_can_moderate(uow, comment, ctx)
            deleted = await CascadeDeleteService(uow).delete_comments([comment_id])
        logger.info("comment_deleted", comment_id=comment_id, user_id=ctx.user_id, deleted=deleted)
        return deleted

    async def toggle_visibility(self, ctx: AuthContext, comment_id: int) -> VisibilityDTO:
        async with self._uow_factory() as uow:
            comment = await self._get_or_404(uow, comment_id)
            await self._ensure_can_moderate(uow, comment, ctx)
            comment.toggle_visibility()
            comment = await uow.comment_repository.update(comment)
        logger.info("comment_visibility_changed", comment_id=comment_id,
                    visibility=comment.visibility.value, user_id=ctx.user_id)
        return VisibilityDTO(id=comment.id, visibility=comment.visibility)
