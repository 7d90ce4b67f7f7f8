"""
API依赖项 - 认证、授权与服务装配
"""
from typing import AsyncIterator, Callable, Optional

import structlog
from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from application.context import AuthContext
from application.dto import PaginationParams
from application.ports.avatar import AvatarGenerator
from application.ports.storage import StoragePort
from application.services.admin_service import AdminApplicationService
from application.services.article_service import ArticleApplicationService
from application.services.comment_service import CommentApplicationService
from application.services.reaction_service import ReactionApplicationService
from application.services.user_service import UserApplicationService
from core.config import settings
from core.exceptions import TokenExpiredException, UnauthorizedException
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.adapters.avatar_generator import DiceBearAvatarGenerator
from infrastructure.adapters.storage_port import StorageProviderPortAdapter
from infrastructure.external.api_clients.dicebear import DiceBearClient
from infrastructure.external.storage import StorageProvider, get_storage
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

# HTTP Bearer for direct API calls
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication",
    auto_error=False,
)


async def get_token(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
) -> str:
    """从 Authorization: Bearer 头中提取 token"""
    if bearer_token and bearer_token.credentials:
        return bearer_token.credentials
    raise UnauthorizedException("Authentication credentials were not provided")


def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return SQLAlchemyUnitOfWork


async def get_storage_port(provider: StorageProvider = Depends(get_storage)) -> StoragePort:
    return StorageProviderPortAdapter(provider)


async def get_avatar_generator(
    storage: StoragePort = Depends(get_storage_port),
) -> AsyncIterator[AvatarGenerator]:
    cfg = settings.avatar
    client = DiceBearClient(
        base_url=cfg.base_url,
        style=cfg.style,
        size=cfg.size,
        timeout=cfg.timeout,
        max_retries=cfg.max_retries,
    )
    try:
        yield DiceBearAvatarGenerator(client, storage, cfg.default_url)
    finally:
        await client.close()


# ----------------------------------------------------------------------
# 应用服务
# ----------------------------------------------------------------------
async def get_user_service(
    uow_factory=Depends(get_uow_factory),
    storage: StoragePort = Depends(get_storage_port),
    avatar_generator: AvatarGenerator = Depends(get_avatar_generator),
) -> UserApplicationService:
    return UserApplicationService(uow_factory, avatar_generator=avatar_generator, storage=storage)


async def get_article_service(
    uow_factory=Depends(get_uow_factory),
    storage: StoragePort = Depends(get_storage_port),
) -> ArticleApplicationService:
    return ArticleApplicationService(uow_factory, storage=storage)


async def get_comment_service(uow_factory=Depends(get_uow_factory)) -> CommentApplicationService:
    return CommentApplicationService(uow_factory, max_depth=settings.COMMENT_MAX_DEPTH)


async def get_reaction_service(uow_factory=Depends(get_uow_factory)) -> ReactionApplicationService:
    return ReactionApplicationService(uow_factory)


async def get_admin_service(
    uow_factory=Depends(get_uow_factory),
    storage: StoragePort = Depends(get_storage_port),
) -> AdminApplicationService:
    return AdminApplicationService(uow_factory, storage=storage)


# ----------------------------------------------------------------------
# 认证上下文
# ----------------------------------------------------------------------
async def get_auth_context(
    token: str = Depends(get_token),
    uow_factory=Depends(get_uow_factory),
) -> AuthContext:
    """当前登录用户；封禁到期的用户在这里自动解封"""
    ctx = await UserApplicationService(uow_factory).authenticate_token(token)
    structlog.contextvars.bind_contextvars(user_id=ctx.user_id)
    return ctx


async def get_optional_auth_context(
    bearer_token: Optional[HTTPAuthorizationCredentials] = Depends(http_bearer),
    uow_factory=Depends(get_uow_factory),
) -> Optional[AuthContext]:
    """公开接口的可选认证：未携带或无效的令牌按匿名处理"""
    if not bearer_token or not bearer_token.credentials:
        return None
    try:
        return await get_auth_context(bearer_token.credentials, uow_factory)
    except (UnauthorizedException, TokenExpiredException):
        return None


async def get_active_auth_context(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
    """写操作：被封禁用户返回 403"""
    ctx.ensure_can_write()
    return ctx


async def get_admin_context(ctx: AuthContext = Depends(get_active_auth_context)) -> AuthContext:
    """管理员接口"""
    ctx.ensure_admin()
    return ctx


def get_pagination(
    page: int = Query(1, ge=1, description="页码，从1开始"),
    size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="每页大小"),
) -> PaginationParams:
    return PaginationParams(page=page, size=size)
