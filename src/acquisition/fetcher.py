"""
Page fetcher with proxy fallback.

Public pages are usually reachable directly, but some hosts block
non-browser clients. When the direct request fails the fetcher tries
two proxy routes:

1. Direct GET of the page URL
2. Text-extraction proxy keyed by the URL without its scheme
3. Raw pass-through proxy keyed by the percent-encoded URL

The first route that answers with a 2xx status wins. A failed route is
never retried; it falls straight through to the next one.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from urllib.parse import quote

import httpx
from loguru import logger

from config import get_settings

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)

# Characters encodeURIComponent leaves untouched besides alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"


@dataclass(frozen=True)
class FetchRoute:
    """One way of retrieving a page: a name and a URL builder."""

    name: str
    build_url: Callable[[str], str]


def text_proxy_url(url: str, base: str) -> str:
    """Build the text-extraction proxy URL (scheme stripped)."""
    return f"{base}{_SCHEME_RE.sub('', url)}"


def raw_proxy_url(url: str, base: str) -> str:
    """Build the raw pass-through proxy URL (target percent-encoded)."""
    return f"{base}{quote(url, safe=_URI_COMPONENT_SAFE)}"


class PageFetcher:
    """
    Async fetcher that walks a fixed list of routes until one succeeds.

    Usage:
        async with PageFetcher() as fetcher:
            text = await fetcher.fetch("https://example.notion.site/Page-<id>")
    """

    def __init__(
        self,
        timeout: float | None = None,
        text_proxy_base: str | None = None,
        raw_proxy_base: str | None = None,
        reject_blank: bool | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.fetch_timeout_seconds
        self.reject_blank = (
            reject_blank if reject_blank is not None else settings.fetch_reject_blank
        )
        text_base = text_proxy_base or settings.text_proxy_base
        raw_base = raw_proxy_base or settings.raw_proxy_base

        self.routes: list[FetchRoute] = [
            FetchRoute("direct", lambda url: url),
            FetchRoute("text-proxy", lambda url: text_proxy_url(url, text_base)),
            FetchRoute("raw-proxy", lambda url: raw_proxy_url(url, raw_base)),
        ]
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout),
            follow_redirects=True,
            headers={"User-Agent": settings.user_agent},
        )

    async def __aenter__(self) -> PageFetcher:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def fetch(self, url: str) -> str | None:
        """
        Fetch page text, falling back through the proxy routes.

        Args:
            url: Absolute page URL

        Returns:
            Body text of the first successful route, or None if every route failed
        """
        for route in self.routes:
            text = await self._try_route(route, url)
            if text is not None:
                logger.debug(f"Fetched {url} via {route.name} ({len(text)} chars)")
                return text

        logger.warning(f"All fetch routes failed for {url}")
        return None

    async def _try_route(self, route: FetchRoute, url: str) -> str | None:
        target = route.build_url(url)
        try:
            response = await self.client.get(target)
        except httpx.HTTPError as e:
            logger.debug(f"Route {route.name} failed for {url}: {e!r}")
            return None

        if not response.is_success:
            logger.debug(f"Route {route.name} returned {response.status_code} for {url}")
            return None

        text = response.text
        if self.reject_blank and not text.strip():
            logger.debug(f"Route {route.name} returned a blank body for {url}")
            return None
        return text
