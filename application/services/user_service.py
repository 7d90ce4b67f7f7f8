"""
用户应用服务（application/services）- 编排领域服务和处理应用逻辑
"""
from typing import Callable, List, Optional, Tuple

from application.context import AuthContext
from application.dto import (
    AuthResponseDTO,
    ChangePasswordDTO,
    DeleteAccountDTO,
    DeleteReportDTO,
    LoginDTO,
    PaginationParams,
    RegisterDTO,
    TokenDTO,
    UserProfileDTO,
    UserResponseDTO,
    UsernameCheckDTO,
    UserUpdateDTO,
)
from application.ports.avatar import AvatarGenerator
from application.ports.storage import StoragePort
from application.services.token_service import TokenService
from application.utils.storage import release_covers, remove_stored_files, store_image
from core.config import settings
from core.exceptions import UnauthorizedException
from core.logging_config import get_logger
from domain.common.exceptions import (
    BusinessException,
    DomainValidationException,
    UsernameAlreadyExistsException,
    UserNotFoundException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.services.cascade_delete import CascadeDeleteService, CascadeOptions, CascadeReport
from domain.user.entity import User
from domain.user.service import PasswordService, UserDomainService


logger = get_logger(__name__)


def to_user_dto(user: User) -> UserResponseDTO:
    return UserResponseDTO.model_validate(user)


def to_report_dto(report: CascadeReport) -> DeleteReportDTO:
    return DeleteReportDTO(
        reactions_deleted=report.reactions_deleted,
        comments_deleted=report.comments_deleted,
        comments_orphaned=report.comments_orphaned,
        articles_deleted=report.articles_deleted,
        articles_orphaned=report.articles_orphaned,
    )


class UserApplicationService:
    """用户应用服务 - 处理应用层逻辑"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        token_service: Optional[TokenService] = None,
        avatar_generator: Optional[AvatarGenerator] = None,
        storage: Optional[StoragePort] = None,
    ):
        self._uow_factory = uow_factory
        self._token_service = token_service or TokenService()
        self._avatar_generator = avatar_generator
        self._storage = storage

    # ------------------------------------------------------------------
    # 认证
    # ------------------------------------------------------------------
    async def register_user(self, data: RegisterDTO) -> AuthResponseDTO:
        """注册新用户：先做本地校验，再获取头像，最后在事务内落库"""
        User.validate_username(data.username)
        PasswordService.validate_password_strength(data.password)
        async with self._uow_factory(readonly=True) as uow:
            if await uow.user_repository.exists_by_username(data.username):
                raise UsernameAlreadyExistsException(data.username)

        avatar_url = settings.avatar.default_url
        if self._avatar_generator is not None:
            avatar_url = await self._avatar_generator.generate(data.username)

        try:
            async with self._uow_factory() as uow:
                user = await UserDomainService(uow.user_repository).register_user(
                    username=data.username,
                    password=data.password,
                    real_name=data.real_name,
                    date_of_birth=data.date_of_birth,
                    bio=data.bio,
                    avatar_url=avatar_url,
                )
        except BusinessException:
            # 并发注册同名用户时，清理已经生成的头像
            await remove_stored_files(self._storage, [avatar_url], logger, kind="avatars")
            raise

        logger.info("user_registered", user_id=user.id, username=user.username, role=user.role.value)
        return self._auth_response(user)

    async def login(self, data: LoginDTO) -> AuthResponseDTO:
        """用户登录（顺带刷新封禁状态）"""
        async with self._uow_factory() as uow:
            user = await UserDomainService(uow.user_repository).authenticate_user(
                username=data.username,
                password=data.password,
            )
        logger.info("user_logged_in", user_id=user.id, banned=user.is_banned)
        return self._auth_response(user)

    def _auth_response(self, user: User) -> AuthResponseDTO:
        token = self._token_service.issue(user)
        return AuthResponseDTO(**token.model_dump(), user=to_user_dto(user))

    async def refresh_token(self, ctx: AuthContext) -> TokenDTO:
        async with self._uow_factory(readonly=True) as uow:
            user = await uow.user_repository.get_by_id(ctx.user_id)
            if not user:
                raise UserNotFoundException(ctx.user_id)
        return self._token_service.issue(user)

    async def authenticate_token(self, token: str) -> AuthContext:
        """校验访问令牌并构造认证上下文；封禁到期的用户在此自动解封"""
        user_id = self._token_service.verify_access_token(token)
        if user_id is None:
            raise UnauthorizedException("Invalid authentication credentials")

        async with self._uow_factory() as uow:
            user = await uow.user_repository.get_by_id(user_id)
            if not user:
                raise UnauthorizedException("User no longer exists")
            lifted = user.is_banned
            user = await UserDomainService(uow.user_repository).refresh_ban(user)
        if lifted and not user.is_banned:
            logger.info("user_ban_expired", user_id=user.id)
        return AuthContext.from_user(user)

    async def check_username(self, username: str) -> UsernameCheckDTO:
        try:
            User.validate_username(username)
        except DomainValidationException:
            return UsernameCheckDTO(username=username, available=False, valid=False)
        async with self._uow_factory(readonly=True) as uow:
            exists = await uow.user_repository.exists_by_username(username)
        return UsernameCheckDTO(username=username, available=not exists, valid=True)

    # ------------------------------------------------------------------
    # 个人资料
    # ------------------------------------------------------------------
    async def get_user(self, user_id: int) -> UserResponseDTO:
        async with self._uow_factory(readonly=True) as uow:
            user = await uow.user_repository.get_by_id(user_id)
            if not user:
                raise UserNotFoundException(user_id)
            return to_user_dto(user)

    async def get_profile(self, user_id: int) -> UserProfileDTO:
        """公开资料，附带文章数与评论数"""
        async with self._uow_factory(readonly=True) as uow:
            user = await uow.user_repository.get_by_id(user_id)
            if not user:
                raise UserNotFoundException(user_id)
            counts = await uow.user_repository.content_counts([user.id])
        return self._to_profile(user, counts.get(user.id, (0, 0)))

    async def list_users(self, params: PaginationParams,
                         search: Optional[str] = None) -> Tuple[List[UserProfileDTO], int]:
        async with self._uow_factory(readonly=True) as uow:
            users = await uow.user_repository.get_all(skip=params.skip, limit=params.limit, search=search)
            total = await uow.user_repository.count_all(search=search)
            counts = await uow.user_repository.content_counts([u.id for u in users])
        return [self._to_profile(u, counts.get(u.id, (0, 0))) for u in users], total

    @staticmethod
    def _to_profile(user: User, counts: Tuple[int, int]) -> UserProfileDTO:
        return UserProfileDTO(
            id=user.id,
            username=user.username,
            role=user.role,
            real_name=user.real_name,
            bio=user.bio,
            avatar_url=user.avatar_url,
            created_at=user.created_at,
            article_count=counts[0],
            comment_count=counts[1],
        )

    async def update_profile(self, ctx: AuthContext, data: UserUpdateDTO) -> UserResponseDTO:
        async with self._uow_factory() as uow:
            repo = uow.user_repository
            user = await repo.get_by_id(ctx.user_id)
            if not user:
                raise UserNotFoundException(ctx.user_id)
            if data.username is not None and data.username != user.username:
                User.validate_username(data.username)
                if await repo.exists_by_username(data.username):
                    raise UsernameAlreadyExistsException(data.username)
            user.update_profile(
                username=data.username,
                real_name=data.real_name,
                date_of_birth=data.date_of_birth,
                bio=data.bio,
            )
            user = await repo.update(user)
        logger.info("user_profile_updated", user_id=user.id)
        return to_user_dto(user)

    async def change_password(self, ctx: AuthContext, data: ChangePasswordDTO) -> None:
        async with self._uow_factory() as uow:
            await UserDomainService(uow.user_repository).change_user_password(
                ctx.user_id, data.old_password, data.new_password
            )
        logger.info("user_password_changed", user_id=ctx.user_id)

    async def update_avatar(self, ctx: AuthContext, data: bytes,
                            content_type: Optional[str]) -> UserResponseDTO:
        """上传新头像；旧的自定义头像在提交后尽力删除"""
        outcome = await store_image(
            self._storage, "avatars", data, content_type, settings.storage.max_avatar_size
        )
        try:
            async with self._uow_factory() as uow:
                user = await uow.user_repository.get_by_id(ctx.user_id)
                if not user:
                    raise UserNotFoundException(ctx.user_id)
                old_url = user.avatar_url if user.has_custom_avatar else None
                user.avatar_url = outcome.url
                user = await uow.user_repository.update(user)
        except BusinessException:
            await remove_stored_files(self._storage, [outcome.url], logger, kind="avatars")
            raise

        await remove_stored_files(self._storage, [old_url], logger, kind="avatars")
        logger.info("user_avatar_updated", user_id=user.id, key=outcome.key)
        return to_user_dto(user)

    async def delete_account(self, ctx: AuthContext, data: DeleteAccountDTO) -> DeleteReportDTO:
        """注销账号：确认密码后在一个事务中级联删除"""
        options = CascadeOptions(
            delete_articles=data.delete_articles,
            delete_comments=data.delete_comments,
        )
        async with self._uow_factory() as uow:
            user = await uow.user_repository.get_by_id(ctx.user_id)
            if not user:
                raise UserNotFoundException(ctx.user_id)
            await UserDomainService(uow.user_repository).verify_password_for(user, data.password)
            report = await CascadeDeleteService(uow).delete_user(user, options)

        await release_covers(self._uow_factory, self._storage, report.covers_to_remove, logger)
        await remove_stored_files(self._storage, report.avatars_to_remove, logger, kind="avatars")
        logger.info(
            "user_account_deleted",
            user_id=ctx.user_id,
            articles_deleted=report.articles_deleted,
            comments_deleted=report.comments_deleted,
        )
        return to_report_dto(report)
