"""
用户领域实体 - 包含核心业务规则（角色、封禁状态机）
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Optional
import re

from domain.common.exceptions import DomainValidationException


USERNAME_PATTERN = re.compile(r'^[a-zA-Z0-9_]{6,20}$')
DEFAULT_AVATAR_URL = "/uploads/avatars/default.png"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    BANNED = "banned"


def _as_utc(value: datetime) -> datetime:
    # SQLite 取回的时间不带时区，按 UTC 处理
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass
class User:
    """用户实体 - 领域核心"""

    id: Optional[int]
    username: str
    hashed_password: str
    role: UserRole = UserRole.USER
    status: UserStatus = UserStatus.ACTIVE
    ban_reason: Optional[str] = None
    ban_expire_at: Optional[datetime] = None
    real_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    bio: Optional[str] = None
    avatar_url: str = DEFAULT_AVATAR_URL
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.role = UserRole(self.role)
        self.status = UserStatus(self.status)
        self.validate_username(self.username)

    @staticmethod
    def validate_username(username: str) -> None:
        """业务规则：用户名 6-20 位，只能包含字母、数字和下划线"""
        if not USERNAME_PATTERN.match(username or ""):
            raise DomainValidationException(
                "Username must be 6-20 characters of letters, digits or underscore",
                field="username",
            )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_banned(self) -> bool:
        return self.status == UserStatus.BANNED

    @property
    def has_custom_avatar(self) -> bool:
        return bool(self.avatar_url) and self.avatar_url != DEFAULT_AVATAR_URL

    def ban(self, reason: str, duration_hours: float, now: Optional[datetime] = None) -> None:
        """业务规则：封禁用户，需要原因和时长（小时），记录绝对过期时间"""
        if not reason or not reason.strip():
            raise DomainValidationException("Ban reason is required", field="reason")
        if duration_hours is None or duration_hours <= 0:
            raise DomainValidationException("Ban duration must be positive", field="duration_hours")
        now = now or datetime.now(timezone.utc)
        self.status = UserStatus.BANNED
        self.ban_reason = reason.strip()
        self.ban_expire_at = now + timedelta(hours=duration_hours)

    def unban(self) -> None:
        """业务规则：解除封禁，无条件清空原因与过期时间"""
        self.status = UserStatus.ACTIVE
        self.ban_reason = None
        self.ban_expire_at = None

    def refresh_ban_status(self, now: Optional[datetime] = None) -> bool:
        """封禁到期则自动解封；返回是否发生了状态变化"""
        if not self.is_banned or self.ban_expire_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        if now >= _as_utc(self.ban_expire_at):
            self.unban()
            return True
        return False

    def update_profile(
        self,
        username: Optional[str] = None,
        real_name: Optional[str] = None,
        date_of_birth: Optional[date] = None,
        bio: Optional[str] = None,
    ) -> None:
        """业务规则：更新用户资料"""
        if username is not None:
            self.validate_username(username)
            self.username = username
        if real_name is not None:
            self.real_name = real_name
        if date_of_birth is not None:
            self.date_of_birth = date_of_birth
        if bio is not None:
            self.bio = bio

    def change_password(self, new_password_hash: str) -> None:
        if not new_password_hash:
            raise DomainValidationException("Password cannot be empty", field="password")
        self.hashed_password = new_password_hash

    def promote(self) -> None:
        self.role = UserRole.ADMIN

    def demote(self) -> None:
        self.role = UserRole.USER
