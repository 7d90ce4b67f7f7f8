"""
评论与表态数据库模型
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .base import Base


class CommentModel(Base):
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False, comment="评论内容")
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True, comment="文章ID")
    # 用户被删除且选择保留评论时置空
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True, comment="评论者ID")
    parent_id = Column(Integer, ForeignKey("comments.id"), nullable=True, index=True, comment="父评论ID")
    visibility = Column(String(10), default="visible", nullable=False, comment="可见性: visible/hidden")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )

    def __repr__(self):
        return f"<CommentModel(id={self.id}, article_id={self.article_id}, parent_id={self.parent_id})>"


class ReactionModel(Base):
    __tablename__ = "article_reactions"
    __table_args__ = (
        UniqueConstraint("article_id", "user_id", name="uq_article_reactions_article_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True, comment="文章ID")
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True, comment="用户ID")
    type = Column(String(10), nullable=False, comment="类型: like/love/haha/angry")
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
