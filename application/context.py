"""请求级认证上下文：由 API 依赖项构造后显式传给应用服务"""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from domain.common.exceptions import PermissionDeniedException, UserBannedException
from domain.user.entity import User, UserRole, UserStatus


@dataclass(frozen=True)
class AuthContext:
    user_id: int
    username: str
    role: UserRole
    status: UserStatus
    ban_reason: Optional[str] = None
    ban_expire_at: Optional[datetime] = None

    @classmethod
    def from_user(cls, user: User) -> "AuthContext":
        return cls(
            user_id=user.id,
            username=user.username,
            role=user.role,
            status=user.status,
            ban_reason=user.ban_reason,
            ban_expire_at=user.ban_expire_at,
        )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_banned(self) -> bool:
        return self.status == UserStatus.BANNED

    def ensure_can_write(self) -> None:
        """被封禁用户可以登录和浏览，但不能发表内容"""
        if self.is_banned:
            raise UserBannedException(self.ban_reason, self.ban_expire_at)

    def ensure_admin(self) -> None:
        if not self.is_admin:
            raise PermissionDeniedException("Administrator privileges required")
