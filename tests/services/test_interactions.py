from datetime import datetime, timedelta, timezone

import pytest

from application.context import AuthContext
from application.dto import ArticleCreateDTO, BanUserDTO, CommentCreateDTO, PaginationParams
from application.services.admin_service import AdminApplicationService
from application.services.article_service import ArticleApplicationService
from application.services.comment_service import CommentApplicationService
from application.services.reaction_service import ReactionApplicationService
from application.services.token_service import TokenService
from core.exceptions import TokenExpiredException
from domain.article.entity import ArticleStatus
from domain.common.exceptions import (
    ArticleNotFoundException,
    CommentDepthExceededException,
    DomainValidationException,
    LastAdminException,
    UserBannedException,
)
from domain.reaction.entity import ReactionOutcome
from domain.user.entity import UserRole, UserStatus


async def _ctx(uow_factory, user_id: int) -> AuthContext:
    async with uow_factory(readonly=True) as uow:
        return AuthContext.from_user(await uow.user_repository.get_by_id(user_id))


@pytest.fixture
async def setup(uow_factory, storage, register):
    admin = (await register("admin_01")).user
    carol = (await register("carol_01")).user
    admin_ctx = await _ctx(uow_factory, admin.id)
    carol_ctx = await _ctx(uow_factory, carol.id)
    articles = ArticleApplicationService(uow_factory, storage=storage)
    post = await articles.create_article(admin_ctx, ArticleCreateDTO(
        title="Published", content="body", status=ArticleStatus.PUBLISHED,
    ))
    return admin_ctx, carol_ctx, post


@pytest.mark.asyncio
async def test_first_user_is_admin(setup):
    admin_ctx, carol_ctx, _ = setup
    assert admin_ctx.role == UserRole.ADMIN
    assert carol_ctx.role == UserRole.USER


@pytest.mark.asyncio
async def test_reaction_toggle_cycle(uow_factory, setup):
    _, carol_ctx, post = setup
    service = ReactionApplicationService(uow_factory)

    added = await service.set_reaction(carol_ctx, post.id, "like")
    assert added.outcome == ReactionOutcome.ADDED
    assert added.counts["like"] == 1 and added.user_reaction == "like"

    switched = await service.set_reaction(carol_ctx, post.id, "angry")
    assert switched.outcome == ReactionOutcome.UPDATED
    assert switched.counts["like"] == 0 and switched.counts["angry"] == 1

    removed = await service.set_reaction(carol_ctx, post.id, "angry")
    assert removed.outcome == ReactionOutcome.REMOVED
    assert removed.total == 0 and removed.user_reaction is None

    again = await service.set_reaction(carol_ctx, post.id, "like")
    assert again.outcome == ReactionOutcome.ADDED and again.total == 1

    with pytest.raises(DomainValidationException):
        await service.set_reaction(carol_ctx, post.id, "wow")


@pytest.mark.asyncio
async def test_reactions_hidden_for_unpublished_article(uow_factory, storage, setup):
    _, carol_ctx, _ = setup
    draft = await ArticleApplicationService(uow_factory, storage=storage).create_article(
        carol_ctx, ArticleCreateDTO(title="Draft", content="body", status=ArticleStatus.DRAFT)
    )
    service = ReactionApplicationService(uow_factory)
    with pytest.raises(ArticleNotFoundException):
        await service.get_summary(None, draft.id)
    summary = await service.get_summary(carol_ctx, draft.id)
    assert summary.total == 0


@pytest.mark.asyncio
async def test_reply_depth_limit(uow_factory, setup):
    admin_ctx, carol_ctx, post = setup
    service = CommentApplicationService(uow_factory, max_depth=3)

    level1 = await service.create_comment(carol_ctx, CommentCreateDTO(article_id=post.id, content="l1"))
    level2 = await service.create_comment(admin_ctx, CommentCreateDTO(
        article_id=post.id, content="l2", parent_id=level1.id,
    ))
    level3 = await service.create_comment(carol_ctx, CommentCreateDTO(
        article_id=post.id, content="l3", parent_id=level2.id,
    ))
    with pytest.raises(CommentDepthExceededException):
        await service.create_comment(admin_ctx, CommentCreateDTO(
            article_id=post.id, content="l4", parent_id=level3.id,
        ))

    tree = await service.get_tree(None, post.id)
    assert tree.total == 3
    assert tree.comments[0].children[0].children[0].id == level3.id

    replies, total = await service.list_replies(None, post.id, level1.id, PaginationParams())
    assert total == 1 and replies[0].id == level2.id


@pytest.mark.asyncio
async def test_comments_only_on_published_articles(uow_factory, storage, setup):
    _, carol_ctx, _ = setup
    pending = await ArticleApplicationService(uow_factory, storage=storage).create_article(
        carol_ctx, ArticleCreateDTO(title="Pending", content="body")
    )
    assert pending.status == ArticleStatus.PENDING
    with pytest.raises(DomainValidationException):
        await CommentApplicationService(uow_factory).create_comment(
            carol_ctx, CommentCreateDTO(article_id=pending.id, content="hi")
        )


@pytest.mark.asyncio
async def test_last_admin_cannot_be_demoted(uow_factory, storage, setup):
    admin_ctx, carol_ctx, _ = setup
    service = AdminApplicationService(uow_factory, storage=storage)

    with pytest.raises(LastAdminException):
        await service.demote(admin_ctx, admin_ctx.user_id)

    promoted = await service.promote(admin_ctx, carol_ctx.user_id)
    assert promoted.role == UserRole.ADMIN
    demoted = await service.demote(admin_ctx, admin_ctx.user_id)
    assert demoted.role == UserRole.USER


@pytest.mark.asyncio
async def test_ban_blocks_writes_and_expires(uow_factory, storage, user_service, setup):
    admin_ctx, carol_ctx, _ = setup
    admin = AdminApplicationService(uow_factory, storage=storage)
    tokens = TokenService()

    banned = await admin.ban_user(admin_ctx, carol_ctx.user_id, BanUserDTO(reason="spam", duration_hours=1))
    assert banned.status == UserStatus.BANNED

    async with uow_factory(readonly=True) as uow:
        carol = await uow.user_repository.get_by_id(carol_ctx.user_id)
    ctx = await user_service.authenticate_token(tokens.create_access_token(carol))
    assert ctx.is_banned
    with pytest.raises(UserBannedException):
        ctx.ensure_can_write()

    # 把过期时间拨到过去，下一次认证时自动解封
    async with uow_factory() as uow:
        carol = await uow.user_repository.get_by_id(carol_ctx.user_id)
        carol.ban_expire_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        await uow.user_repository.update(carol)

    ctx = await user_service.authenticate_token(tokens.create_access_token(carol))
    assert not ctx.is_banned
    ctx.ensure_can_write()

    async with uow_factory(readonly=True) as uow:
        stored = await uow.user_repository.get_by_id(carol_ctx.user_id)
    assert stored.status == UserStatus.ACTIVE
    assert stored.ban_reason is None
    assert stored.ban_expire_at is None


def test_expired_token_rejected():
    from domain.user.entity import User

    user = User(id=5, username="dave_001", hashed_password="x")
    tokens = TokenService(expire_minutes=1)
    token = tokens.create_access_token(user, now=datetime.now(timezone.utc) - timedelta(minutes=5))
    with pytest.raises(TokenExpiredException):
        tokens.verify_access_token(token)
    assert tokens.verify_access_token("not-a-token") is None
