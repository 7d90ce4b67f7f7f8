"""
评论领域实体
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException


CONTENT_MAX_LENGTH = 2000


class CommentVisibility(str, Enum):
    VISIBLE = "visible"
    HIDDEN = "hidden"


@dataclass
class Comment:
    """评论实体；parent_id 指向被回复的评论，形成树"""

    id: Optional[int]
    article_id: int
    user_id: Optional[int]
    content: str
    parent_id: Optional[int] = None
    visibility: CommentVisibility = CommentVisibility.VISIBLE
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.visibility = CommentVisibility(self.visibility)
        self.validate_content(self.content)

    @staticmethod
    def validate_content(content: str) -> None:
        if not content or not content.strip():
            raise DomainValidationException("Comment content is required", field="content")
        if len(content) > CONTENT_MAX_LENGTH:
            raise DomainValidationException(
                f"Comment cannot exceed {CONTENT_MAX_LENGTH} characters", field="content"
            )

    @property
    def is_visible(self) -> bool:
        return self.visibility == CommentVisibility.VISIBLE

    def edit(self, content: str) -> None:
        self.validate_content(content)
        self.content = content

    def toggle_visibility(self) -> CommentVisibility:
        self.visibility = (
            CommentVisibility.HIDDEN if self.is_visible else CommentVisibility.VISIBLE
        )
        return self.visibility
