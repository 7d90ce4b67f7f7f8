import pytest

from application.context import AuthContext
from application.dto import (
    ArticleCreateDTO,
    CommentCreateDTO,
    DeleteAccountDTO,
    PaginationParams,
)
from application.services.admin_service import AdminApplicationService
from application.services.article_service import ArticleApplicationService
from application.services.comment_service import CommentApplicationService
from application.services.reaction_service import ReactionApplicationService
from domain.article.entity import ArticleStatus
from domain.common.exceptions import LastAdminException, PasswordErrorException, PermissionDeniedException
from domain.services.cascade_delete import CascadeOptions
from domain.user.entity import User
from infrastructure.repositories.user_repository import SQLAlchemyUserRepository

DEFAULT_PASSWORD = "secret123"


async def _ctx(uow_factory, user_id: int) -> AuthContext:
    async with uow_factory(readonly=True) as uow:
        user: User = await uow.user_repository.get_by_id(user_id)
    return AuthContext.from_user(user)


@pytest.fixture
async def populated(uow_factory, storage, register):
    """admin 发布一篇文章，bob 评论、回复并表态，bob 自己也有一篇文章"""
    admin = (await register("admin_01")).user
    bob = (await register("bob_0001")).user
    admin_ctx = await _ctx(uow_factory, admin.id)
    bob_ctx = await _ctx(uow_factory, bob.id)

    articles = ArticleApplicationService(uow_factory, storage=storage)
    comments = CommentApplicationService(uow_factory)
    reactions = ReactionApplicationService(uow_factory)

    post = await articles.create_article(admin_ctx, ArticleCreateDTO(
        title="Admin post", content="body", tags=["python", "web"], status=ArticleStatus.PUBLISHED,
    ))
    bob_post = await articles.create_article(bob_ctx, ArticleCreateDTO(title="Bob post", content="body"))
    await articles.change_status(admin_ctx, bob_post.id, ArticleStatus.PUBLISHED)

    root = await comments.create_comment(bob_ctx, CommentCreateDTO(article_id=post.id, content="first"))
    reply = await comments.create_comment(admin_ctx, CommentCreateDTO(
        article_id=post.id, content="reply", parent_id=root.id,
    ))
    await comments.create_comment(admin_ctx, CommentCreateDTO(article_id=bob_post.id, content="nice"))
    await reactions.set_reaction(bob_ctx, post.id, "like")
    await reactions.set_reaction(admin_ctx, bob_post.id, "love")

    return {
        "admin_ctx": admin_ctx,
        "bob_ctx": bob_ctx,
        "post": post,
        "bob_post": bob_post,
        "root": root,
        "reply": reply,
    }


@pytest.mark.asyncio
async def test_delete_article_removes_comments_reactions_and_tag_links(uow_factory, storage, populated):
    service = ArticleApplicationService(uow_factory, storage=storage)
    post = populated["post"]

    await service.delete_article(populated["admin_ctx"], post.id)

    async with uow_factory(readonly=True) as uow:
        assert await uow.article_repository.get_by_id(post.id) is None
        assert await uow.comment_repository.list_by_article(post.id) == []
        assert await uow.reaction_repository.count_for_article(post.id) == 0
        assert await uow.tag_repository.tags_for_articles([post.id]) == {}
        # 另一篇文章不受影响
        assert await uow.article_repository.get_by_id(populated["bob_post"].id) is not None


@pytest.mark.asyncio
async def test_non_owner_cannot_delete_article(uow_factory, storage, populated):
    service = ArticleApplicationService(uow_factory, storage=storage)
    with pytest.raises(PermissionDeniedException):
        await service.delete_article(populated["bob_ctx"], populated["post"].id)


@pytest.mark.asyncio
async def test_deleting_root_comment_removes_replies(uow_factory, populated):
    service = CommentApplicationService(uow_factory)

    deleted = await service.delete_comment(populated["bob_ctx"], populated["root"].id)

    assert deleted == 2
    tree = await service.get_tree(None, populated["post"].id)
    assert tree.total == 0 and tree.comments == []


@pytest.mark.asyncio
async def test_delete_account_with_full_cascade(uow_factory, user_service, populated):
    bob_ctx = populated["bob_ctx"]

    report = await user_service.delete_account(bob_ctx, DeleteAccountDTO(password=DEFAULT_PASSWORD))

    assert report.articles_deleted == 1
    # bob 的根评论连同 admin 的回复，以及 admin 在 bob 文章下的评论
    assert report.comments_deleted == 3
    assert report.reactions_deleted == 2
    async with uow_factory(readonly=True) as uow:
        assert await uow.user_repository.get_by_id(bob_ctx.user_id) is None
        assert await uow.article_repository.get_by_id(populated["bob_post"].id) is None
        assert await uow.reaction_repository.count_all() == 0


@pytest.mark.asyncio
async def test_delete_account_keeping_content_orphans_it(uow_factory, user_service, populated):
    bob_ctx = populated["bob_ctx"]

    report = await user_service.delete_account(bob_ctx, DeleteAccountDTO(
        password=DEFAULT_PASSWORD, delete_articles=False, delete_comments=False,
    ))

    assert report.articles_orphaned == 1
    assert report.comments_orphaned == 1
    async with uow_factory(readonly=True) as uow:
        article = await uow.article_repository.get_by_id(populated["bob_post"].id)
        assert article.author_id is None
        assert article.status == ArticleStatus.PENDING
        comment = await uow.comment_repository.get_by_id(populated["root"].id)
        assert comment.user_id is None
        assert comment.content == "first"


@pytest.mark.asyncio
async def test_delete_account_requires_password(user_service, populated):
    with pytest.raises(PasswordErrorException):
        await user_service.delete_account(populated["bob_ctx"], DeleteAccountDTO(password="wrong123"))


@pytest.mark.asyncio
async def test_last_admin_cannot_delete_own_account(user_service, populated):
    with pytest.raises(LastAdminException):
        await user_service.delete_account(populated["admin_ctx"], DeleteAccountDTO(password=DEFAULT_PASSWORD))


@pytest.mark.asyncio
async def test_admin_delete_user_and_batch_delete(uow_factory, storage, populated):
    admin = AdminApplicationService(uow_factory, storage=storage)
    admin_ctx = populated["admin_ctx"]

    with pytest.raises(PermissionDeniedException):
        await admin.delete_user(admin_ctx, admin_ctx.user_id, CascadeOptions())

    result = await admin.batch_delete_articles(admin_ctx, [populated["post"].id, 9999])
    assert result.requested == 2 and result.deleted == 1

    await admin.delete_user(admin_ctx, populated["bob_ctx"].user_id, CascadeOptions())
    users, total = await admin.list_users(PaginationParams())
    assert total == 1 and users[0].id == admin_ctx.user_id


@pytest.mark.asyncio
async def test_non_last_admin_can_be_deleted_but_not_the_last(uow_factory, storage, user_service, populated):
    admin = AdminApplicationService(uow_factory, storage=storage)
    admin_ctx, bob_ctx = populated["admin_ctx"], populated["bob_ctx"]

    await admin.promote(admin_ctx, bob_ctx.user_id)
    await admin.delete_user(admin_ctx, bob_ctx.user_id, CascadeOptions(delete_articles=False))

    async with uow_factory(readonly=True) as uow:
        assert await uow.user_repository.count_admins() == 1
    with pytest.raises(LastAdminException):
        await user_service.delete_account(admin_ctx, DeleteAccountDTO(password=DEFAULT_PASSWORD))


@pytest.mark.asyncio
async def test_failed_user_delete_rolls_back_every_step(uow_factory, storage, populated, monkeypatch):
    async def broken_delete(self, user_id: int) -> bool:
        raise RuntimeError("disk full")

    # 评论、表态、文章都已删除之后，最后一步删除用户行失败
    monkeypatch.setattr(SQLAlchemyUserRepository, "delete", broken_delete)
    admin = AdminApplicationService(uow_factory, storage=storage)
    bob_id = populated["bob_ctx"].user_id

    with pytest.raises(RuntimeError):
        await admin.delete_user(populated["admin_ctx"], bob_id, CascadeOptions())

    async with uow_factory(readonly=True) as uow:
        assert await uow.user_repository.get_by_id(bob_id) is not None
        assert await uow.article_repository.get_by_id(populated["bob_post"].id) is not None
        assert await uow.comment_repository.get_by_id(populated["root"].id) is not None
        assert await uow.comment_repository.get_by_id(populated["reply"].id) is not None
        assert len(await uow.comment_repository.list_by_article(populated["bob_post"].id)) == 1
        assert await uow.reaction_repository.count_all() == 2
