"""
Link Discoverer - finds child content pages linked from an index page.

A link counts as a child page when its host belongs to the hosting site
(notion.site / notion.so by default) and its path carries a 32-character
hex page id. Everything else on such pages is navigation chrome.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup

from config import get_settings

PAGE_ID_RE = re.compile(r"[a-f0-9]{32}", re.IGNORECASE)


def discover_child_links(
    document: BeautifulSoup,
    base_url: str,
    host_pattern: str | None = None,
) -> list[str]:
    """
    Collect absolute child-page URLs from every anchor in the document.

    Args:
        document: Parsed HTML document
        base_url: URL the document was fetched from (relative hrefs resolve against it)
        host_pattern: Hostname regex; defaults to settings.child_host_pattern

    Returns:
        Unique URLs in first-seen order
    """
    host_re = re.compile(host_pattern or get_settings().child_host_pattern, re.IGNORECASE)

    urls: dict[str, None] = {}
    for anchor in document.find_all("a", href=True):
        href = anchor.get("href")
        if not isinstance(href, str):
            continue
        try:
            absolute = urljoin(base_url, href.strip())
            parts = urlsplit(absolute)
            hostname = parts.hostname or ""
        except ValueError:
            # e.g. "http://[broken" - not a child page
            continue

        if host_re.search(hostname) and PAGE_ID_RE.search(parts.path):
            urls.setdefault(absolute, None)

    return list(urls)
