"""Article domain exports."""
from .entity import Article, ArticleStatus
from .repository import ArticleRepository

__all__ = ["Article", "ArticleStatus", "ArticleRepository"]
