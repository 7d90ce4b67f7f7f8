"""
级联删除领域服务

所有步骤都通过同一个 Unit of Work 执行，调用方负责事务边界：
任何一步失败都会整体回滚。文件删除不属于事务，这里只收集需要清理的文件 URL，
由应用层在提交成功后尽力删除。
"""
from dataclasses import dataclass, field
from typing import Iterable, List

from domain.article.entity import Article
from domain.comment.tree import collect_descendant_ids
from domain.common.exceptions import ArticleNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.user.entity import User
from domain.user.service import UserDomainService


@dataclass
class CascadeOptions:
    """删除用户时对其内容的处理方式：True 为删除，False 为保留并解除归属"""
    delete_articles: bool = True
    delete_comments: bool = True


@dataclass
class CascadeReport:
    reactions_deleted: int = 0
    comments_deleted: int = 0
    comments_orphaned: int = 0
    articles_deleted: int = 0
    articles_orphaned: int = 0
    covers_to_remove: List[str] = field(default_factory=list)
    avatars_to_remove: List[str] = field(default_factory=list)


class CascadeDeleteService:

    def __init__(self, uow: AbstractUnitOfWork):
        self.uow = uow

    async def delete_article(self, article_id: int, report: CascadeReport | None = None) -> CascadeReport:
        """删除顺序：表态 -> 评论（含回复） -> 标签关联 -> 文章行"""
        report = report or CascadeReport()
        article = await self.uow.article_repository.get_by_id(article_id)
        if article is None:
            raise ArticleNotFoundException(article_id)
        await self._delete_loaded_article(article, report)
        return report

    async def delete_articles(self, article_ids: Iterable[int]) -> CascadeReport:
        """批量删除，不存在的ID直接跳过"""
        report = CascadeReport()
        for article_id in dict.fromkeys(article_ids):
            article = await self.uow.article_repository.get_by_id(article_id)
            if article is not None:
                await self._delete_loaded_article(article, report)
        return report

    async def _delete_loaded_article(self, article: Article, report: CascadeReport) -> None:
        ids = [article.id]
        report.reactions_deleted += await self.uow.reaction_repository.delete_by_articles(ids)
        report.comments_deleted += await self.uow.comment_repository.delete_by_articles(ids)
        await self.uow.tag_repository.delete_article_links(ids)
        await self.uow.article_repository.delete(article.id)
        report.articles_deleted += 1
        if article.image_url:
            report.covers_to_remove.append(article.image_url)

    async def delete_comments(self, comment_ids: Iterable[int]) -> int:
        """删除评论及其全部后代回复"""
        roots = list(dict.fromkeys(comment_ids))
        if not roots:
            return 0
        comments = self.uow.comment_repository
        article_ids = set()
        for comment_id in roots:
            comment = await comments.get_by_id(comment_id)
            if comment is not None:
                article_ids.add(comment.article_id)
        if not article_ids:
            return 0
        scope = await comments.list_by_articles(sorted(article_ids))
        existing = {c.id for c in scope}
        targets = collect_descendant_ids(scope, [cid for cid in roots if cid in existing])
        return await comments.delete_many(targets)

    async def delete_user(self, user: User, options: CascadeOptions | None = None) -> CascadeReport:
        """删除用户及其关联数据（最后一名管理员不可删除）"""
        options = options or CascadeOptions()
        await UserDomainService(self.uow.user_repository).ensure_not_last_admin(user)

        report = CascadeReport()
        articles = self.uow.article_repository
        own_article_ids = await articles.ids_by_author(user.id)

        # 1. 用户自己的表态
        report.reactions_deleted += await self.uow.reaction_repository.delete_by_user(user.id)

        # 2. 彻底删除时，一并删除他人对该用户文章的表态
        if options.delete_articles and own_article_ids:
            report.reactions_deleted += await self.uow.reaction_repository.delete_by_articles(own_article_ids)

        # 3. 评论：删除（含所有回复）或保留内容并解除归属
        if options.delete_comments:
            own_comment_ids = await self.uow.comment_repository.ids_by_user(user.id)
            report.comments_deleted += await self.delete_comments(own_comment_ids)
        else:
            report.comments_orphaned += await self.uow.comment_repository.orphan_by_user(user.id)

        # 4/5. 文章：级联删除，或解除归属并退回待审核
        if options.delete_articles:
            for article_id in own_article_ids:
                article = await articles.get_by_id(article_id)
                if article is not None:
                    await self._delete_loaded_article(article, report)
        else:
            report.articles_orphaned += await articles.orphan_by_author(user.id)

        # 6. 自定义头像文件（提交后删除）
        if user.has_custom_avatar:
            report.avatars_to_remove.append(user.avatar_url)

        # 7. 用户行
        await self.uow.user_repository.delete(user.id)
        return report
