"""
文章应用服务 - 文章的增删改查、状态流转、封面上传与浏览计数
"""
from typing import Callable, List, Optional, Sequence, Tuple

from application.context import AuthContext
from application.dto import (
    ArticleCreateDTO,
    ArticleResponseDTO,
    ArticleUpdateDTO,
    AuthorDTO,
    PaginationParams,
    UploadResponseDTO,
    ViewCountDTO,
)
from application.ports.storage import StoragePort
from application.utils.storage import ensure_cover_url, release_covers, remove_stored_files, store_image
from core.config import settings
from core.logging_config import get_logger
from domain.article.entity import AUTHOR_STATUSES, Article, ArticleStatus
from domain.common.exceptions import (
    ArticleNotFoundException,
    BusinessException,
    DomainValidationException,
    PermissionDeniedException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.services.cascade_delete import CascadeDeleteService
from domain.tag.entity import normalize_tag_names


logger = get_logger(__name__)

SORT_FIELDS = ("created_at", "view_count")


def parse_status_filter(value: Optional[str]) -> Optional[List[ArticleStatus]]:
    """管理员的状态过滤：None 或 all 表示不过滤"""
    if value is None or value == "all":
        return None
    try:
        return [ArticleStatus(value)]
    except ValueError:
        raise DomainValidationException(
            "Invalid article status",
            field="status",
            details={"allowed": [s.value for s in ArticleStatus] + ["all"]},
        ) from None


async def assemble_articles(uow: AbstractUnitOfWork, articles: Sequence[Article]) -> List[ArticleResponseDTO]:
    """批量补齐作者、标签、评论数和表态数"""
    ids = [a.id for a in articles]
    author_ids = sorted({a.author_id for a in articles if a.author_id is not None})
    authors = await uow.user_repository.get_by_ids(author_ids)
    tags = await uow.tag_repository.tags_for_articles(ids)
    comment_counts = await uow.article_repository.comment_counts(ids)
    reactions = await uow.reaction_repository.counts_for_articles(ids)

    result = []
    for article in articles:
        author = authors.get(article.author_id) if article.author_id is not None else None
        result.append(ArticleResponseDTO(
            id=article.id,
            title=article.title,
            content=article.content,
            html_content=article.html_content,
            image_url=article.image_url,
            status=article.status,
            review_reason=article.review_reason,
            reviewed_at=article.reviewed_at,
            view_count=article.view_count,
            author_id=article.author_id,
            author=AuthorDTO(id=author.id, username=author.username, avatar_url=author.avatar_url)
            if author else None,
            tags=tags.get(article.id, []),
            comment_count=comment_counts.get(article.id, 0),
            reactions=reactions.get(article.id, {}),
            created_at=article.created_at,
            updated_at=article.updated_at,
        ))
    return result


def can_view(article: Article, ctx: Optional[AuthContext]) -> bool:
    """未发布的文章只对作者和管理员可见"""
    if article.is_published:
        return True
    return ctx is not None and (ctx.is_admin or article.is_owned_by(ctx.user_id))


def ensure_can_manage(article: Article, ctx: AuthContext) -> None:
    if not (ctx.is_admin or article.is_owned_by(ctx.user_id)):
        raise PermissionDeniedException("Only the author or an administrator can modify this article")


class ArticleApplicationService:
    """文章应用服务"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork], storage: Optional[StoragePort] = None):
        self._uow_factory = uow_factory
        self._storage = storage

    async def _get_or_404(self, uow: AbstractUnitOfWork, article_id: int) -> Article:
        article = await uow.article_repository.get_by_id(article_id)
        if article is None:
            raise ArticleNotFoundException(article_id)
        return article

    async def _one(self, uow: AbstractUnitOfWork, article: Article) -> ArticleResponseDTO:
        return (await assemble_articles(uow, [article]))[0]

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------
    async def list_articles(
        self,
        ctx: Optional[AuthContext],
        params: PaginationParams,
        *,
        search: Optional[str] = None,
        sort: str = "created_at",
        order: str = "desc",
        tag: Optional[str] = None,
        status: Optional[str] = None,
        author_id: Optional[int] = None,
    ) -> Tuple[List[ArticleResponseDTO], int]:
        """文章列表；匿名用户和普通用户只能看到已发布文章"""
        if ctx is not None and ctx.is_admin:
            statuses = parse_status_filter(status)
        else:
            statuses = [ArticleStatus.PUBLISHED]
        return await self._page(params, search=search, statuses=statuses, author_id=author_id,
                                tag=tag, sort=sort, order=order)

    async def list_own_articles(self, ctx: AuthContext, params: PaginationParams,
                                status: Optional[str] = None) -> Tuple[List[ArticleResponseDTO], int]:
        """作者自己的文章，任意状态"""
        return await self._page(params, statuses=parse_status_filter(status), author_id=ctx.user_id)

    async def list_published_by_author(self, author_id: int,
                                       params: PaginationParams) -> Tuple[List[ArticleResponseDTO], int]:
        return await self._page(params, statuses=[ArticleStatus.PUBLISHED], author_id=author_id)

    async def _page(self, params: PaginationParams, *, sort: str = "created_at", order: str = "desc",
                    **filters) -> Tuple[List[ArticleResponseDTO], int]:
        if sort not in SORT_FIELDS:
            sort = "created_at"
        async with self._uow_factory(readonly=True) as uow:
            articles = await uow.article_repository.list(
                skip=params.skip, limit=params.limit, sort=sort, order=order, **filters
            )
            total = await uow.article_repository.count(**filters)
            return await assemble_articles(uow, articles), total

    async def get_article(self, ctx: Optional[AuthContext], article_id: int) -> ArticleResponseDTO:
        """文章详情；每次查看浏览量加一"""
        async with self._uow_factory() as uow:
            article = await self._get_or_404(uow, article_id)
            if not can_view(article, ctx):
                raise ArticleNotFoundException(article_id)
            article.view_count = await uow.article_repository.increment_view_count(article_id) or 0
            return await self._one(uow, article)

    async def increment_view(self, article_id: int) -> ViewCountDTO:
        async with self._uow_factory() as uow:
            count = await uow.article_repository.increment_view_count(article_id)
            if count is None:
                raise ArticleNotFoundException(article_id)
        return ViewCountDTO(article_id=article_id, view_count=count)

    # ------------------------------------------------------------------
    # 写操作
    # ------------------------------------------------------------------
    async def create_article(self, ctx: AuthContext, data: ArticleCreateDTO) -> ArticleResponseDTO:
        """非管理员只能创建草稿或待审核文章，默认待审核；管理员可直接发布"""
        status = data.status or ArticleStatus.PENDING
        allowed = AUTHOR_STATUSES | {ArticleStatus.PUBLISHED} if ctx.is_admin else AUTHOR_STATUSES
        if status not in allowed:
            raise PermissionDeniedException(f"Cannot create an article with status {status.value}")
        ensure_cover_url(self._storage, data.image_url)

        tag_names = normalize_tag_names(data.tags)
        article = Article(
            id=None,
            title=data.title,
            content=data.content,
            author_id=ctx.user_id,
            status=status,
            html_content=data.html_content,
            image_url=data.image_url or None,
        )
        async with self._uow_factory() as uow:
            article = await uow.article_repository.create(article)
            await uow.tag_repository.set_article_tags(article.id, tag_names)
            dto = await self._one(uow, article)
        logger.info("article_created", article_id=dto.id, author_id=ctx.user_id, status=status.value)
        return dto

    async def update_article(self, ctx: AuthContext, article_id: int,
                             data: ArticleUpdateDTO) -> ArticleResponseDTO:
        """作者或管理员编辑；作者修改已发布/被驳回的文章会退回待审核"""
        ensure_cover_url(self._storage, data.image_url)
        async with self._uow_factory() as uow:
            article = await self._get_or_404(uow, article_id)
            ensure_can_manage(article, ctx)
            old_cover = article.image_url
            article.edit(
                by_admin=ctx.is_admin,
                title=data.title,
                content=data.content,
                html_content=data.html_content,
                image_url=data.image_url,
            )
            article = await uow.article_repository.update(article)
            if data.tags is not None:
                await uow.tag_repository.set_article_tags(article.id, normalize_tag_names(data.tags))
            dto = await self._one(uow, article)

        if old_cover and old_cover != article.image_url:
            await release_covers(self._uow_factory, self._storage, [old_cover], logger)
        logger.info("article_updated", article_id=article_id, user_id=ctx.user_id, status=dto.status.value)
        return dto

    async def change_status(self, ctx: AuthContext, article_id: int,
                            status: ArticleStatus) -> ArticleResponseDTO:
        async with self._uow_factory() as uow:
            article = await self._get_or_404(uow, article_id)
            ensure_can_manage(article, ctx)
            article.change_status(status, by_admin=ctx.is_admin)
            article = await uow.article_repository.update(article)
            dto = await self._one(uow, article)
        logger.info("article_status_changed", article_id=article_id, status=dto.status.value, user_id=ctx.user_id)
        return dto

    async def delete_article(self, ctx: AuthContext, article_id: int) -> None:
        async with self._uow_factory() as uow:
            article = await self._get_or_404(uow, article_id)
            ensure_can_manage(article, ctx)
            report = await CascadeDeleteService(uow).delete_article(article_id)

        await release_covers(self._uow_factory, self._storage, report.covers_to_remove, logger)
        logger.info(
            "article_deleted",
            article_id=article_id,
            user_id=ctx.user_id,
            comments_deleted=report.comments_deleted,
            reactions_deleted=report.reactions_deleted,
        )

    # ------------------------------------------------------------------
    # 图片
    # ------------------------------------------------------------------
    async def upload_image(self, ctx: AuthContext, data: bytes, content_type: Optional[str],
                           kind: str = "images") -> UploadResponseDTO:
        """正文插图或创建文章前预先上传的封面"""
        max_size = settings.storage.max_cover_size if kind == "covers" else settings.storage.max_image_size
        outcome = await store_image(self._storage, kind, data, content_type, max_size)
        logger.info("image_uploaded", user_id=ctx.user_id, key=outcome.key, size=outcome.size)
        return UploadResponseDTO(
            url=outcome.url, key=outcome.key, size=outcome.size, content_type=outcome.content_type
        )

    async def upload_cover(self, ctx: AuthContext, article_id: int, data: bytes,
                           content_type: Optional[str]) -> ArticleResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            ensure_can_manage(await self._get_or_404(uow, article_id), ctx)

        outcome = await store_image(
            self._storage, "covers", data, content_type, settings.storage.max_cover_size
        )
        try:
            async with self._uow_factory() as uow:
                article = await self._get_or_404(uow, article_id)
                old_cover = article.image_url
                article.image_url = outcome.url
                article = await uow.article_repository.update(article)
                dto = await self._one(uow, article)
        except BusinessException:
            await remove_stored_files(self._storage, [outcome.url], logger, kind="covers")
            raise

        await release_covers(self._uow_factory, self._storage, [old_cover], logger)
        logger.info("article_cover_updated", article_id=article_id, key=outcome.key)
        return dto

    async def remove_cover(self, ctx: AuthContext, article_id: int) -> ArticleResponseDTO:
        async with self._uow_factory() as uow:
            article = await self._get_or_404(uow, article_id)
            ensure_can_manage(article, ctx)
            old_cover = article.remove_cover()
            article = await uow.article_repository.update(article)
            dto = await self._one(uow, article)

        await release_covers(self._uow_factory, self._storage, [old_cover], logger)
        logger.info("article_cover_removed", article_id=article_id)
        return dto
