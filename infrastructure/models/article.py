"""
文章与标签数据库模型
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


class ArticleModel(Base):
    __tablename__ = "articles"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False, comment="标题")
    content = Column(Text, nullable=False, comment="Markdown 正文")
    html_content = Column(Text, nullable=True, comment="渲染后的 HTML")
    image_url = Column(String(255), nullable=True, comment="封面图URL")
    status = Column(String(20), default="pending", nullable=False, index=True,
                    comment="状态: draft/pending/published/rejected")
    review_reason = Column(Text, nullable=True, comment="审核意见")
    reviewed_at = Column(DateTime(timezone=True), nullable=True, comment="审核时间")
    # 作者被删除且选择保留文章时置空
    author_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True, comment="作者ID")
    view_count = Column(Integer, default=0, nullable=False, comment="浏览量")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    def __repr__(self):
        return f"<ArticleModel(id={self.id}, title='{self.title}', status='{self.status}')>"


class TagModel(Base):
    __tablename__ = "tags"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, comment="标签名")


class ArticleTagModel(Base):
    __tablename__ = "article_tags"
    __table_args__ = (
        UniqueConstraint("article_id", "tag_id", name="uq_article_tags_article_tag"),
    )

    id = Column(Integer, primary_key=True)
    article_id = Column(Integer, ForeignKey("articles.id"), nullable=False, index=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), nullable=False, index=True)
