"""
Spaced-repetition scheduler.

One fixed exponential scheme per card:
- correct answer: level + 1 (capped at MAX_LEVEL)
- wrong answer:   level reset to 0
- next due:       now + max(1, 2^level) days

Card selection prefers overdue cards (no record counts as overdue) in
circular order after the current position; when nothing is due it picks
the card that becomes due soonest.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timedelta
from typing import Protocol

from loguru import logger

from config import get_settings
from src.core.models import Card, SrsRecord, utc_now

MAX_LEVEL = 10


class SrsStore(Protocol):
    """The part of the repository the scheduler needs."""

    def get_srs_record(self, card_id: str) -> SrsRecord | None:
        ...

    def upsert_srs_record(self, record: SrsRecord) -> None:
        ...


def review_interval(level: int) -> timedelta:
    """Interval until the next review for a level: 2^level days, at least one day."""
    return timedelta(days=max(1, 2**level))


def apply_review(
    record: SrsRecord | None,
    card_id: str,
    was_correct: bool,
    now: datetime,
    max_level: int = MAX_LEVEL,
) -> SrsRecord:
    """
    Compute the record that results from one review.

    Args:
        record: Current record, or None if the card was never reviewed
        card_id: Card being reviewed
        was_correct: Review outcome
        now: Review time; next_due is always computed from it
        max_level: Level cap

    Returns:
        New SrsRecord (the input record is not modified)
    """
    level = record.level if record is not None else 0
    level = min(level + 1, max_level) if was_correct else 0
    return SrsRecord(card_id=card_id, level=level, next_due=now + review_interval(level))


def select_next(
    cards: Sequence[Card],
    current_index: int,
    records: Mapping[str, SrsRecord],
    now: datetime,
) -> int:
    """
    Pick the index of the next card to show.

    Scans circularly from current_index + 1 over the whole deck. The first
    due card wins (a card without a record is due). If nothing is due, the
    card with the earliest next_due wins; ties go to the first one scanned.

    Returns:
        Index into cards (0 for an empty deck)
    """
    total = len(cards)
    if total == 0:
        return 0

    soonest_due: datetime | None = None
    soonest_index = (current_index + 1) % total
    for step in range(1, total + 1):
        index = (current_index + step) % total
        record = records.get(cards[index].id)
        if record is None or record.is_due(now):
            return index
        if soonest_due is None or record.next_due < soonest_due:
            soonest_due = record.next_due
            soonest_index = index
    return soonest_index


class Scheduler:
    """Records review outcomes; the only writer of SRS records."""

    def __init__(self, store: SrsStore, max_level: int | None = None) -> None:
        self._store = store
        level_cap = max_level if max_level is not None else get_settings().srs_max_level
        self.max_level = max(0, min(level_cap, MAX_LEVEL))

    def record_review(
        self, card_id: str, was_correct: bool, now: datetime | None = None
    ) -> SrsRecord:
        """
        Load, update and persist the record for one review.

        Raises:
            SQLAlchemyError: If the store cannot be read or written
        """
        now = now or utc_now()
        current = self._store.get_srs_record(card_id)
        updated = apply_review(current, card_id, was_correct, now, self.max_level)
        self._store.upsert_srs_record(updated)
        logger.debug(
            f"Card {card_id}: {'correct' if was_correct else 'wrong'}, "
            f"level {current.level if current else 0} -> {updated.level}, "
            f"due {updated.next_due.isoformat()}"
        )
        return updated
