"""
用户数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Date, DateTime, Integer, String, Text

from .base import Base


class UserModel(Base):
    """
    用户数据库模型

    所有业务规则都在 domain.user.entity.User 中
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # 账号信息
    username = Column(String(20), unique=True, index=True, nullable=False, comment="用户名")
    hashed_password = Column(String(255), nullable=False, comment="密码哈希")
    role = Column(String(10), default="user", nullable=False, index=True, comment="角色: user/admin")

    # 封禁信息
    status = Column(String(10), default="active", nullable=False, comment="状态: active/banned")
    ban_reason = Column(Text, nullable=True, comment="封禁原因")
    ban_expire_at = Column(DateTime(timezone=True), nullable=True, comment="封禁到期时间")

    # 个人资料
    real_name = Column(String(50), nullable=True, comment="真实姓名")
    date_of_birth = Column(Date, nullable=True, comment="出生日期")
    bio = Column(Text, nullable=True, comment="个人简介")
    avatar_url = Column(
        String(255),
        default="/uploads/avatars/default.png",
        nullable=False,
        comment="头像URL"
    )

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )

    def __repr__(self):
        return f"<UserModel(id={self.id}, username='{self.username}', role='{self.role}')>"
