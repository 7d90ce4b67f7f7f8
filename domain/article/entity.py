"""
文章领域实体 - 状态流转与编辑规则
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from domain.common.exceptions import (
    DomainValidationException,
    InvalidStatusTransitionException,
    PermissionDeniedException,
)


TITLE_MAX_LENGTH = 200


class ArticleStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PUBLISHED = "published"
    REJECTED = "rejected"


# 作者自己可以设置的状态；发布/驳回需要管理员审核
AUTHOR_STATUSES = frozenset({ArticleStatus.DRAFT, ArticleStatus.PENDING})
REVIEW_STATUSES = frozenset({ArticleStatus.PUBLISHED, ArticleStatus.REJECTED})


@dataclass
class Article:
    """文章实体"""

    id: Optional[int]
    title: str
    content: str
    author_id: Optional[int]
    status: ArticleStatus = ArticleStatus.PENDING
    html_content: Optional[str] = None
    image_url: Optional[str] = None
    view_count: int = 0
    review_reason: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.status = ArticleStatus(self.status)
        self.validate_title(self.title)
        self.validate_content(self.content)

    @staticmethod
    def validate_title(title: str) -> None:
        if not title or not title.strip():
            raise DomainValidationException("Title is required", field="title")
        if len(title) > TITLE_MAX_LENGTH:
            raise DomainValidationException(
                f"Title cannot exceed {TITLE_MAX_LENGTH} characters", field="title"
            )

    @staticmethod
    def validate_content(content: str) -> None:
        if not content or not content.strip():
            raise DomainValidationException("Content is required", field="content")

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED

    def is_owned_by(self, user_id: Optional[int]) -> bool:
        return user_id is not None and self.author_id == user_id

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    def edit(
        self,
        *,
        by_admin: bool,
        title: Optional[str] = None,
        content: Optional[str] = None,
        html_content: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> None:
        """编辑文章；作者修改已发布/被驳回的文章后需要重新审核"""
        if title is not None:
            self.validate_title(title)
            self.title = title
        if content is not None:
            self.validate_content(content)
            self.content = content
        if html_content is not None:
            self.html_content = html_content
        if image_url is not None:
            self.image_url = image_url or None
        if not by_admin and self.status in REVIEW_STATUSES:
            self.status = ArticleStatus.PENDING
        self._touch()

    def change_status(self, target: ArticleStatus, *, by_admin: bool) -> None:
        """作者只能在草稿/待审核之间切换，管理员可以设置任意状态"""
        target = ArticleStatus(target)
        if not by_admin and target not in AUTHOR_STATUSES:
            raise PermissionDeniedException("Only administrators can publish or reject articles")
        self.status = target
        self._touch()

    def review(self, target: ArticleStatus, reason: Optional[str] = None,
               now: Optional[datetime] = None) -> None:
        """管理员审核：只能给出 published 或 rejected，驳回必须填写原因"""
        target = ArticleStatus(target)
        if target not in REVIEW_STATUSES:
            raise InvalidStatusTransitionException(self.status.value, target.value)
        if target == ArticleStatus.REJECTED and not (reason and reason.strip()):
            raise DomainValidationException("A reason is required to reject an article", field="reason")
        self.status = target
        self.review_reason = reason.strip() if reason else None
        self.reviewed_at = now or datetime.now(timezone.utc)
        self._touch()

    def remove_cover(self) -> Optional[str]:
        old, self.image_url = self.image_url, None
        self._touch()
        return old
