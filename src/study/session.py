"""
Review session - the state behind one review loop.

Holds the loaded deck, the cursor and an explicit per-session cache of
SRS records (rebuilt whenever a topic is loaded) so picking the next card
never goes back to the store.
"""

from __future__ import annotations

import random
from datetime import datetime

from loguru import logger

from src.core.models import Card, SrsRecord, utc_now
from src.db.repository import CardRepository
from src.study.scheduler import Scheduler, select_next


class ReviewSession:
    """Cursor over one topic's cards driven by the scheduler."""

    def __init__(self, repository: CardRepository, scheduler: Scheduler | None = None) -> None:
        self._repository = repository
        self._scheduler = scheduler or Scheduler(repository)
        self.topic_id: str | None = None
        self.cards: list[Card] = []
        self.index = 0
        self.records: dict[str, SrsRecord] = {}

    @property
    def is_empty(self) -> bool:
        return not self.cards

    @property
    def current_card(self) -> Card | None:
        if not self.cards:
            return None
        return self.cards[self.index]

    def load_topic(
        self,
        topic_id: str,
        shuffle: bool = False,
        now: datetime | None = None,
        rng: random.Random | None = None,
    ) -> Card | None:
        """
        Load a topic's cards and SRS records, then position on the first card to show.

        Returns:
            The current card, or None if the topic has no cards
        """
        self.topic_id = topic_id
        self.cards = self._repository.list_cards_by_topic(topic_id)
        if shuffle:
            (rng or random).shuffle(self.cards)
        self.records = self._repository.get_srs_records(card.id for card in self.cards)
        self.index = select_next(self.cards, -1, self.records, now or utc_now())
        logger.info(
            f"Loaded topic {topic_id}: {len(self.cards)} cards, {len(self.records)} reviewed before"
        )
        return self.current_card

    def load_first_topic(self, shuffle: bool = False, now: datetime | None = None) -> Card | None:
        """Open the first topic by name; an empty store leaves the session empty."""
        topics = self._repository.list_topics()
        if not topics:
            self.topic_id = None
            self.cards = []
            self.index = 0
            self.records = {}
            return None
        return self.load_topic(topics[0].id, shuffle=shuffle, now=now)

    def answer(self, was_correct: bool, now: datetime | None = None) -> Card | None:
        """
        Record the outcome for the current card and move to the next one.

        Returns:
            The next card to show, or None for an empty deck
        """
        card = self.current_card
        if card is None:
            return None
        now = now or utc_now()
        self.records[card.id] = self._scheduler.record_review(card.id, was_correct, now)
        self.index = select_next(self.cards, self.index, self.records, now)
        return self.current_card

    def save_card(self, question: str, answer: str) -> Card | None:
        """Persist a manual edit of the current card."""
        card = self.current_card
        if card is None:
            return None
        updated = card.model_copy(update={"question": question, "answer": answer})
        self._repository.upsert_card(updated)
        self.cards[self.index] = updated
        return updated

    def due_count(self, now: datetime | None = None) -> int:
        """Number of cards in the deck that are due (never reviewed included)."""
        now = now or utc_now()
        return sum(
            1
            for card in self.cards
            if (record := self.records.get(card.id)) is None or record.is_due(now)
        )
