"""
Acquisition Service - turns a root page URL into an import payload.

Core responsibilities:
- Fetch the root page through the fallback fetcher
- Discover child pages on HTML index pages
- Extract each child page into its own topic (failures isolated per page)
- Fall back to extracting the root page itself as a single topic
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from bs4 import BeautifulSoup
from loguru import logger

from src.acquisition.extractor import ExtractedPage, PageExtractor, is_html, parse_document
from src.acquisition.links import discover_child_links
from src.core.models import ImportPayload


class Fetcher(Protocol):
    """Anything that can turn a URL into page text (or None on failure)."""

    async def fetch(self, url: str) -> str | None:
        ...


class AcquisitionStats:
    """Statistics for one acquisition run."""

    def __init__(self) -> None:
        self.child_links = 0
        self.pages_extracted = 0
        self.pages_failed = 0
        self.cards = 0
        self.used_root = False
        self.start_time = datetime.now()
        self.end_time: datetime | None = None

    def finish(self) -> None:
        """Mark the run as finished."""
        self.end_time = datetime.now()

    def duration_seconds(self) -> float:
        """Calculate duration in seconds."""
        end = self.end_time or datetime.now()
        return (end - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/CLI output."""
        return {
            "child_links": self.child_links,
            "pages_extracted": self.pages_extracted,
            "pages_failed": self.pages_failed,
            "cards": self.cards,
            "used_root": self.used_root,
            "duration_seconds": round(self.duration_seconds(), 2),
        }


class AcquisitionService:
    """
    Orchestrates fetch -> discover -> extract for one page tree.

    Only one level of child links is followed. When the root page links to
    child pages, the root is treated purely as an index and its own text is
    discarded; otherwise the root becomes the single imported topic.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        extractor: PageExtractor | None = None,
        progress_callback: Callable[[str, int, int], None] | None = None,
    ) -> None:
        """
        Initialize acquisition service.

        Args:
            fetcher: PageFetcher (or any object with an async fetch(url))
            extractor: PageExtractor instance (created if not provided)
            progress_callback: Optional callback(url, current, total) per child page
        """
        self._fetcher = fetcher
        self._extractor = extractor or PageExtractor()
        self._progress_callback = progress_callback
        self.stats = AcquisitionStats()

    async def acquire(self, root_url: str, parallel: bool = False) -> ImportPayload | None:
        """
        Build an import payload from a root page and its child pages.

        Args:
            root_url: Public page URL
            parallel: Fetch child pages concurrently instead of one by one

        Returns:
            ImportPayload, or None if the root page could not be fetched or parsed
        """
        self.stats = AcquisitionStats()
        try:
            return await self._acquire(root_url, parallel)
        finally:
            self.stats.finish()
            logger.info(f"Acquisition of {root_url} finished: {self.stats.to_dict()}")

    async def _acquire(self, root_url: str, parallel: bool) -> ImportPayload | None:
        root = await self._fetcher.fetch(root_url)
        if root is None:
            logger.error(f"Could not fetch root page {root_url}")
            return None

        document: BeautifulSoup | None = None
        if is_html(root):
            try:
                document = parse_document(root)
                child_links = discover_child_links(document, root_url)
            except Exception as e:  # Intentionally broad - fall back to the single-page path
                logger.warning(f"Could not scan {root_url} for child pages: {e}")
                child_links = []

            self.stats.child_links = len(child_links)
            if child_links:
                logger.info(f"Found {len(child_links)} child pages under {root_url}")
                pages = await self._extract_children(child_links, parallel)
                if pages:
                    return self._to_payload(pages)
                logger.warning("No child page yielded a topic; importing the root page instead")

        page = self._extract_root(root, document, root_url)
        if page is None:
            return None
        self.stats.used_root = True
        return self._to_payload([page])

    async def _extract_children(self, urls: list[str], parallel: bool) -> list[ExtractedPage]:
        total = len(urls)
        if parallel:
            results = await asyncio.gather(
                *(self._fetch_and_extract(url, i, total) for i, url in enumerate(urls, 1))
            )
        else:
            results = [
                await self._fetch_and_extract(url, i, total) for i, url in enumerate(urls, 1)
            ]
        return [page for page in results if page is not None]

    async def _fetch_and_extract(self, url: str, current: int, total: int) -> ExtractedPage | None:
        try:
            content = await self._fetcher.fetch(url)
        except Exception as e:  # Intentionally broad - skip this page only
            logger.debug(f"Fetcher raised for {url}: {e!r}")
            content = None
        finally:
            if self._progress_callback:
                self._progress_callback(url, current, total)

        if content is None:
            logger.warning(f"Skipping child page {url}: fetch failed")
            self.stats.pages_failed += 1
            return None

        return self._safe_extract(content, url)

    def _extract_root(
        self, content: str, document: BeautifulSoup | None, url: str
    ) -> ExtractedPage | None:
        if document is None:
            return self._safe_extract(content, url)
        try:
            page = self._extractor.extract_document(document)
        except Exception as e:  # Intentionally broad - skip this page only
            logger.warning(f"Could not extract {url}: {e}")
            self.stats.pages_failed += 1
            return None
        self.stats.pages_extracted += 1
        return page

    def _safe_extract(self, content: str, url: str) -> ExtractedPage | None:
        try:
            page = self._extractor.extract(content)
        except Exception as e:  # Intentionally broad - skip this page only
            logger.warning(f"Could not extract {url}: {e}")
            self.stats.pages_failed += 1
            return None
        self.stats.pages_extracted += 1
        return page

    def _to_payload(self, pages: list[ExtractedPage]) -> ImportPayload:
        payload = ImportPayload()
        for page in pages:
            payload.topics.append(page.topic)
            payload.cards.extend(page.cards)
        self.stats.cards = len(payload.cards)
        return payload
