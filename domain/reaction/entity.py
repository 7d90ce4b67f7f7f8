"""
文章表态（like/love/haha/angry）实体
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class ReactionType(str, Enum):
    LIKE = "like"
    LOVE = "love"
    HAHA = "haha"
    ANGRY = "angry"


class ReactionOutcome(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    UPDATED = "updated"


def empty_counts() -> dict[str, int]:
    return {t.value: 0 for t in ReactionType}


@dataclass
class Reaction:
    """同一用户对同一文章至多一条表态"""

    id: Optional[int]
    article_id: int
    user_id: int
    type: ReactionType
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.type = ReactionType(self.type)


@dataclass
class ReactionSummary:
    counts: dict[str, int] = field(default_factory=empty_counts)
    user_reaction: Optional[ReactionType] = None

    @property
    def total(self) -> int:
        return sum(self.counts.values())


@dataclass
class ReactionResult:
    outcome: ReactionOutcome
    summary: ReactionSummary
