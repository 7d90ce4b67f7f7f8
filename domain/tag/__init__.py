"""Tag domain exports."""
from .entity import Tag, normalize_tag_names
from .repository import TagRepository

__all__ = ["Tag", "TagRepository", "normalize_tag_names"]
