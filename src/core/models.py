"""
Domain models shared by acquisition, persistence and study.

These are the shapes that travel between layers and through the
import/export JSON file: ``{"topics": [...], "cards": [...]}``.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


def new_id() -> str:
    """Generate a fresh opaque identifier."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(UTC)


class Topic(BaseModel):
    """A named group of cards, typically one source page."""

    id: str = Field(default_factory=new_id)
    name: str
    description: str | None = None


class Card(BaseModel):
    """A single question/answer unit belonging to one topic."""

    id: str = Field(default_factory=new_id)
    topic_id: str
    question: str
    answer: str = ""


class SrsRecord(BaseModel):
    """Spaced-repetition mastery state for one card."""

    card_id: str
    level: int = Field(default=0, ge=0)
    next_due: datetime

    def is_due(self, now: datetime) -> bool:
        return self.next_due <= now


class ImportPayload(BaseModel):
    """Topics and cards written to the store in one batch."""

    topics: list[Topic] = Field(default_factory=list)
    cards: list[Card] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.topics and not self.cards

    def cards_for(self, topic_id: str) -> list[Card]:
        """Cards of the payload belonging to one topic, in payload order."""
        return [card for card in self.cards if card.topic_id == topic_id]
