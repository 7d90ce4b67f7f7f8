"""
用户领域服务 - 处理复杂的业务逻辑
"""
from datetime import date, datetime, timezone
from typing import Optional
import hashlib
import hmac
import secrets

from domain.common.exceptions import (
    DomainValidationException,
    LastAdminException,
    NewPasswordSameAsOldException,
    PasswordErrorException,
    UsernameAlreadyExistsException,
    UserNotFoundException,
)
from .entity import DEFAULT_AVATAR_URL, User, UserRole
from .repository import UserRepository


class PasswordService:
    """密码服务 - 处理密码相关的业务逻辑"""

    ITERATIONS = 100000

    @staticmethod
    def hash_password(password: str) -> str:
        """密码哈希（PBKDF2-SHA256，随机盐）"""
        salt = secrets.token_hex(32)
        pwd_hash = hashlib.pbkdf2_hmac('sha256',
                                       password.encode('utf-8'),
                                       salt.encode('utf-8'),
                                       PasswordService.ITERATIONS)
        return f"{salt}${pwd_hash.hex()}"

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """验证密码"""
        try:
            salt, pwd_hash = hashed_password.split('$')
        except (AttributeError, ValueError):
            return False
        new_hash = hashlib.pbkdf2_hmac('sha256',
                                       plain_password.encode('utf-8'),
                                       salt.encode('utf-8'),
                                       PasswordService.ITERATIONS)
        return hmac.compare_digest(new_hash.hex(), pwd_hash)

    @staticmethod
    def validate_password_strength(password: str) -> None:
        """业务规则：密码至少8位，且同时包含字母和数字"""
        if len(password) < 8:
            raise DomainValidationException("Password must be at least 8 characters", field="password")
        if not any(c.isalpha() for c in password):
            raise DomainValidationException("Password must contain a letter", field="password")
        if not any(c.isdigit() for c in password):
            raise DomainValidationException("Password must contain a digit", field="password")


class UserDomainService:
    """用户领域服务 - 编排复杂的业务流程"""

    def __init__(self, user_repository: UserRepository):
        self.user_repository = user_repository
        self.password_service = PasswordService()

    async def register_user(
        self,
        username: str,
        password: str,
        real_name: str,
        date_of_birth: date,
        bio: Optional[str] = None,
        avatar_url: Optional[str] = None,
    ) -> User:
        """用户注册的业务流程"""
        User.validate_username(username)
        self.password_service.validate_password_strength(password)

        if await self.user_repository.exists_by_username(username):
            raise UsernameAlreadyExistsException(username)

        user = User(
            id=None,
            username=username,
            hashed_password=self.password_service.hash_password(password),
            real_name=real_name,
            date_of_birth=date_of_birth,
            bio=bio,
            avatar_url=avatar_url or DEFAULT_AVATAR_URL,
            created_at=datetime.now(timezone.utc),
        )

        # 业务规则：系统中没有管理员时，首个注册用户成为管理员
        if await self.user_repository.count_admins() == 0:
            user.role = UserRole.ADMIN

        return await self.user_repository.create(user)

    async def authenticate_user(self, username: str, password: str) -> User:
        """用户认证的业务流程（顺带刷新封禁状态）"""
        user = await self.user_repository.get_by_username(username)
        if not user or not self.password_service.verify_password(password, user.hashed_password):
            raise PasswordErrorException()
        return await self.refresh_ban(user)

    async def refresh_ban(self, user: User, now: Optional[datetime] = None) -> User:
        """封禁到期则自动解封并持久化"""
        if user.refresh_ban_status(now):
            return await self.user_repository.update(user)
        return user

    async def change_user_password(self, user_id: int,
                                   old_password: str,
                                   new_password: str) -> User:
        """修改密码的业务流程"""
        user = await self.user_repository.get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)

        if not self.password_service.verify_password(old_password, user.hashed_password):
            raise PasswordErrorException("Old password is incorrect")

        self.password_service.validate_password_strength(new_password)

        if old_password == new_password:
            raise NewPasswordSameAsOldException()

        user.change_password(self.password_service.hash_password(new_password))
        return await self.user_repository.update(user)

    async def verify_password_for(self, user: User, password: str) -> None:
        """敏感操作前的密码确认"""
        if not self.password_service.verify_password(password or "", user.hashed_password):
            raise PasswordErrorException("Password confirmation failed")

    async def ensure_not_last_admin(self, user: User) -> None:
        """业务规则：系统中必须至少保留一名管理员（在任何修改之前检查）"""
        if user.is_admin and await self.user_repository.count_admins() <= 1:
            raise LastAdminException()

    async def change_role(self, user: User, role: UserRole) -> User:
        """修改角色；降级时执行最后管理员保护"""
        role = UserRole(role)
        if role == user.role:
            return user
        if role == UserRole.USER:
            await self.ensure_not_last_admin(user)
            user.demote()
        else:
            user.promote()
        return await self.user_repository.update(user)
