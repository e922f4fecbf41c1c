"""
Study Module - spaced repetition for imported cards.

Components:
- scheduler: Exponential mastery levels and next-card selection
- session: Review loop state (deck, cursor, SRS cache)
"""

from .scheduler import MAX_LEVEL, Scheduler, apply_review, review_interval, select_next
from .session import ReviewSession

__all__ = [
    "MAX_LEVEL",
    "ReviewSession",
    "Scheduler",
    "apply_review",
    "review_interval",
    "select_next",
]
