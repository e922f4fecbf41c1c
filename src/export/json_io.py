"""
JSON import/export of the card store.

File shape: {"topics": [{id, name, description}], "cards": [{id, topic_id, question, answer}]}.
There is no schema version; missing lists are read as empty.
"""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from src.core.models import ImportPayload
from src.db.repository import CardRepository


class ImportFileError(ValueError):
    """Raised when an import file is not valid JSON or does not match the payload shape."""


def parse_payload(text: str) -> ImportPayload:
    """
    Parse and validate import file content.

    Raises:
        ImportFileError: On invalid JSON or schema mismatch
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ImportFileError(f"Invalid JSON: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ImportFileError("Import file must contain a JSON object")

    try:
        return ImportPayload.model_validate(data)
    except ValidationError as e:
        raise ImportFileError(f"Schema Error: {e}") from e


def import_file(repository: CardRepository, path: Path) -> ImportPayload:
    """Read a JSON file and write its topics and cards in one batch."""
    payload = parse_payload(path.read_text(encoding="utf-8"))
    repository.bulk_import(payload)
    logger.info(f"Imported {path}: {len(payload.topics)} topics, {len(payload.cards)} cards")
    return payload


def export_file(repository: CardRepository, path: Path) -> ImportPayload:
    """Write every topic and card to a JSON file."""
    payload = repository.export_payload()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(payload.model_dump(mode="json"), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    logger.info(f"Exported {len(payload.topics)} topics and {len(payload.cards)} cards to {path}")
    return payload
