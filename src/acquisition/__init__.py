"""
Content Acquisition Pipeline.

Turns a public page tree into topics and cards.

Components:
- fetcher: Direct request with two proxy fallbacks
- extractor: HTML / plain text -> Topic + Cards
- links: Child page discovery on index pages
- service: Orchestration (single page vs. page tree)
"""

from .extractor import ExtractedPage, PageExtractor, collapse_adjacent_duplicates
from .fetcher import PageFetcher
from .links import discover_child_links
from .service import AcquisitionService, AcquisitionStats

__all__ = [
    "AcquisitionService",
    "AcquisitionStats",
    "ExtractedPage",
    "PageExtractor",
    "PageFetcher",
    "collapse_adjacent_duplicates",
    "discover_child_links",
]
