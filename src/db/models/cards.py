"""
Card store tables.

Three collections: topics, cards and per-card SRS records. SRS records
deliberately carry no foreign key to cards: clearing the deck keeps the
review history, and a re-import with the same card ids picks it up again.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from src.core.models import Card, SrsRecord, Topic

from .base import Base


class TopicRow(Base):
    """A named group of cards."""

    __tablename__ = "topics"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text)

    @classmethod
    def from_model(cls, topic: Topic) -> TopicRow:
        return cls(id=topic.id, name=topic.name, description=topic.description)

    def to_model(self) -> Topic:
        return Topic(id=self.id, name=self.name, description=self.description)


class CardRow(Base):
    """A question/answer card."""

    __tablename__ = "cards"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    topic_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False, default="")
    # Insertion order; cards of a topic are listed in the order they were imported
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    @classmethod
    def from_model(cls, card: Card, position: int = 0) -> CardRow:
        return cls(
            id=card.id,
            topic_id=card.topic_id,
            question=card.question,
            answer=card.answer,
            position=position,
        )

    def to_model(self) -> Card:
        return Card(id=self.id, topic_id=self.topic_id, question=self.question, answer=self.answer)


class SrsRecordRow(Base):
    """Mastery level and next due time for one card."""

    __tablename__ = "srs_records"

    card_id: Mapped[str] = mapped_column(Text, primary_key=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_due: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    @classmethod
    def from_model(cls, record: SrsRecord) -> SrsRecordRow:
        return cls(
            card_id=record.card_id,
            level=record.level,
            next_due=record.next_due.astimezone(UTC),
        )

    def to_model(self) -> SrsRecord:
        next_due = self.next_due
        # SQLite drops tzinfo on the way back
        if next_due.tzinfo is None:
            next_due = next_due.replace(tzinfo=UTC)
        return SrsRecord(card_id=self.card_id, level=self.level, next_due=next_due)
