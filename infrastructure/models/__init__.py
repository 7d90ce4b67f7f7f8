"""Infrastructure models package exports."""
from .base import Base, metadata
from .user import UserModel
from .article import ArticleModel, ArticleTagModel, TagModel
from .comment import CommentModel, ReactionModel

__all__ = [
    "Base",
    "metadata",
    "UserModel",
    "ArticleModel",
    "ArticleTagModel",
    "TagModel",
    "CommentModel",
    "ReactionModel",
]
