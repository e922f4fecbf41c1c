"""
Core Module - Shared domain models.

All layers (acquisition, db, study, cli) exchange these types:
- Topic, Card: imported content
- SrsRecord: per-card review state
- ImportPayload: one batch of topics and cards
"""

from src.core.models import Card, ImportPayload, SrsRecord, Topic, new_id, utc_now

__all__ = [
    "Card",
    "ImportPayload",
    "SrsRecord",
    "Topic",
    "new_id",
    "utc_now",
]
