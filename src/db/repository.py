"""
Card Repository - keyed store for topics, cards and SRS records.

Every write replaces whole records (put semantics), so a failed write
never leaves a half-updated card or record behind. Errors from the
database propagate to the caller after the session is rolled back.
"""

from __future__ import annotations

from collections.abc import Iterable

from loguru import logger
from sqlalchemy import Engine, delete, func, select
from sqlalchemy.orm import Session

from src.core.models import Card, ImportPayload, SrsRecord, Topic
from src.db.database import get_engine, make_session_factory, session_scope
from src.db.models import CardRow, SrsRecordRow, TopicRow


class CardRepository:
    """Persistence for the review tool (topics, cards, SRS records)."""

    def __init__(self, engine: Engine | None = None) -> None:
        """
        Initialize repository.

        Args:
            engine: SQLAlchemy engine (defaults to the configured database)
        """
        self._engine = engine or get_engine()
        self._factory = make_session_factory(self._engine)

    # =========================================================================
    # TOPICS & CARDS
    # =========================================================================

    def list_topics(self) -> list[Topic]:
        """All topics sorted by name."""
        with session_scope(self._factory) as session:
            rows = session.scalars(select(TopicRow).order_by(TopicRow.name, TopicRow.id)).all()
            return [row.to_model() for row in rows]

    def get_topic(self, topic_id: str) -> Topic | None:
        with session_scope(self._factory) as session:
            row = session.get(TopicRow, topic_id)
            return row.to_model() if row else None

    def count_cards_by_topic(self) -> dict[str, int]:
        """Number of cards per topic id."""
        with session_scope(self._factory) as session:
            rows = session.execute(
                select(CardRow.topic_id, func.count(CardRow.id)).group_by(CardRow.topic_id)
            ).all()
            return {topic_id: count for topic_id, count in rows}

    def list_cards_by_topic(self, topic_id: str) -> list[Card]:
        """Cards of one topic in import order."""
        with session_scope(self._factory) as session:
            rows = session.scalars(
                select(CardRow)
                .where(CardRow.topic_id == topic_id)
                .order_by(CardRow.position, CardRow.id)
            ).all()
            return [row.to_model() for row in rows]

    def get_card(self, card_id: str) -> Card | None:
        with session_scope(self._factory) as session:
            row = session.get(CardRow, card_id)
            return row.to_model() if row else None

    def upsert_card(self, card: Card) -> None:
        """Insert a card or replace an existing one (import position is kept)."""
        with session_scope(self._factory) as session:
            row = session.get(CardRow, card.id)
            if row is None:
                session.add(CardRow.from_model(card, position=self._next_position(session)))
            else:
                row.topic_id = card.topic_id
                row.question = card.question
                row.answer = card.answer
        logger.debug(f"Saved card {card.id}")

    def clear_all(self) -> None:
        """Wipe topics and cards. SRS records are kept."""
        with session_scope(self._factory) as session:
            session.execute(delete(CardRow))
            session.execute(delete(TopicRow))
        logger.info("Cleared all topics and cards")

    def bulk_import(self, payload: ImportPayload) -> None:
        """
        Write all topics and cards of a payload in one transaction.

        Repeated ids within the payload collapse to the last record, placed
        at the position where the id first appeared.
        """
        topics = list({topic.id: topic for topic in payload.topics}.values())
        cards = list({card.id: card for card in payload.cards}.values())
        known_topics = {topic.id for topic in topics}
        orphans = [card.id for card in cards if card.topic_id not in known_topics]

        with session_scope(self._factory) as session:
            if orphans:
                stored = set(session.scalars(select(TopicRow.id)).all())
                orphans = [
                    card.id
                    for card in cards
                    if card.topic_id not in known_topics and card.topic_id not in stored
                ]
                if orphans:
                    logger.warning(f"{len(orphans)} imported cards reference unknown topics")

            for topic in topics:
                session.merge(TopicRow.from_model(topic))

            position = self._next_position(session)
            for offset, card in enumerate(cards):
                existing = session.get(CardRow, card.id)
                card_position = existing.position if existing else position + offset
                session.merge(CardRow.from_model(card, position=card_position))

        logger.info(f"Imported {len(topics)} topics and {len(cards)} cards")

    def export_payload(self) -> ImportPayload:
        """Everything in the store as one payload (the import/export file shape)."""
        with session_scope(self._factory) as session:
            topics = session.scalars(select(TopicRow).order_by(TopicRow.name, TopicRow.id)).all()
            cards = session.scalars(select(CardRow).order_by(CardRow.position, CardRow.id)).all()
            return ImportPayload(
                topics=[row.to_model() for row in topics],
                cards=[row.to_model() for row in cards],
            )

    # =========================================================================
    # SRS RECORDS
    # =========================================================================

    def get_srs_record(self, card_id: str) -> SrsRecord | None:
        with session_scope(self._factory) as session:
            row = session.get(SrsRecordRow, card_id)
            return row.to_model() if row else None

    def get_srs_records(self, card_ids: Iterable[str]) -> dict[str, SrsRecord]:
        """Existing records for the given cards; cards never reviewed are absent."""
        ids = list(card_ids)
        if not ids:
            return {}
        with session_scope(self._factory) as session:
            rows = session.scalars(select(SrsRecordRow).where(SrsRecordRow.card_id.in_(ids))).all()
            return {row.card_id: row.to_model() for row in rows}

    def upsert_srs_record(self, record: SrsRecord) -> None:
        with session_scope(self._factory) as session:
            session.merge(SrsRecordRow.from_model(record))

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _next_position(session: Session) -> int:
        current = session.scalar(select(func.max(CardRow.position)))
        return 0 if current is None else current + 1
