"""
Page Extractor - turns raw page content into one topic and its cards.

HTML pages are parsed with BeautifulSoup; anything else is treated as
plain text (the text-extraction proxy returns markdown-ish text, not HTML).
Every non-empty text block becomes a card question with an empty answer;
answers are filled in later by manual edit.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from bs4 import BeautifulSoup
from loguru import logger

from config import get_settings
from src.core.models import Card, Topic, new_id

HTML_MARKER = "<html"

# Block elements whose text becomes a card, in document order
CONTENT_SELECTOR = "h1, h2, h3, p, li, blockquote, pre, code"

# Plain-text title must be longer than this many characters
MIN_TITLE_LENGTH = 5

_NEWLINES_RE = re.compile(r"(?:\r?\n)+")


@dataclass
class ExtractedPage:
    """One extracted page: its topic plus cards already tagged with the topic id."""

    topic: Topic
    cards: list[Card] = field(default_factory=list)

    @property
    def questions(self) -> list[str]:
        return [card.question for card in self.cards]


def is_html(content: str) -> bool:
    """Check whether content looks like an HTML document."""
    return HTML_MARKER in content.lower()


def parse_document(content: str) -> BeautifulSoup:
    """Parse HTML text into a queryable document tree."""
    return BeautifulSoup(content, "html.parser")


def collapse_adjacent_duplicates(texts: Iterable[str]) -> list[str]:
    """
    Drop empty strings and strings equal to the previously kept one.

    Only neighbours are compared: ["A", "A", "B", "A"] -> ["A", "B", "A"].
    """
    cleaned: list[str] = []
    for text in texts:
        if not text:
            continue
        if cleaned and cleaned[-1] == text:
            continue
        cleaned.append(text)
    return cleaned


class PageExtractor:
    """Builds a Topic and its Cards from HTML or plain-text page content."""

    def __init__(
        self,
        default_title: str | None = None,
        description: str | None = None,
    ) -> None:
        settings = get_settings()
        self.default_title = default_title or settings.default_topic_title
        self.description = (
            description if description is not None else settings.imported_topic_description
        )

    def extract(self, content: str) -> ExtractedPage:
        """
        Extract a topic and its cards from raw page content.

        Args:
            content: HTML document or plain text

        Returns:
            ExtractedPage with a freshly generated topic id on every card
        """
        if is_html(content):
            return self.extract_document(parse_document(content))
        return self.extract_text(content)

    def extract_document(self, document: BeautifulSoup) -> ExtractedPage:
        """Extract from an already-parsed HTML document."""
        title = self.default_title
        if document.title is not None:
            title = document.title.get_text().strip() or self.default_title

        region = document.find("main") or document.body or document
        texts = [element.get_text().strip() for element in region.select(CONTENT_SELECTOR)]
        return self._build(title, texts)

    def extract_text(self, content: str) -> ExtractedPage:
        """Extract from plain text: one candidate per non-empty line."""
        lines = [line.strip() for line in _NEWLINES_RE.split(content)]
        lines = [line for line in lines if line]
        title = next((line for line in lines if len(line) > MIN_TITLE_LENGTH), self.default_title)
        return self._build(title, lines)

    def _build(self, title: str, texts: list[str]) -> ExtractedPage:
        topic = Topic(id=new_id(), name=title, description=self.description)
        cards = [
            Card(topic_id=topic.id, question=text, answer="")
            for text in collapse_adjacent_duplicates(texts)
        ]
        logger.debug(f"Extracted topic '{title}' with {len(cards)} cards")
        return ExtractedPage(topic=topic, cards=cards)
