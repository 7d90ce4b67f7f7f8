"""Reaction domain exports."""
from .entity import (
    Reaction,
    ReactionOutcome,
    ReactionResult,
    ReactionSummary,
    ReactionType,
    empty_counts,
)
from .repository import ReactionRepository

__all__ = [
    "Reaction",
    "ReactionOutcome",
    "ReactionResult",
    "ReactionSummary",
    "ReactionType",
    "ReactionRepository",
    "empty_counts",
]
