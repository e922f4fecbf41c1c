# SQLAlchemy models
from .base import Base
from .cards import CardRow, SrsRecordRow, TopicRow

__all__ = [
    # Base
    "Base",
    # Content
    "TopicRow",
    "CardRow",
    # Spaced repetition
    "SrsRecordRow",
]
