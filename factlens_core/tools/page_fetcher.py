# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Page fetching and main-text extraction for URL content.

One GET per page with a browser-like identity (many sites refuse obvious
bots), then a selector-based cleanup: strip non-content elements and keep the
container that yields the most text.
"""

from __future__ import annotations

import logging
import re

import httpx
from bs4 import BeautifulSoup

from factlens_core.errors import PipelineError, PipelineErrorKind
from factlens_core.runtime_config import EngineFetchConfig
from factlens_core.utils.trace import Trace

logger = logging.getLogger(__name__)

# Elements that never carry article content.
NON_CONTENT_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "meta",
    "link",
    "head",
    "iframe",
    "svg",
    "nav",
    "header",
    "footer",
    ".advertisement",
    ".ads",
    ".cookie-banner",
    "#cookie-banner",
    ".newsletter",
    ".social-share",
    ".comments",
)

# Content containers in priority order; earlier selectors win ties.
CONTENT_SELECTORS: tuple[str, ...] = (
    "article",
    '[role="article"]',
    ".article-content",
    ".article-body",
    ".story-body",
    ".post-content",
    ".entry-content",
    "main",
    "#main-content",
    "#content",
)

_STATUS_KINDS: dict[int, PipelineErrorKind] = {
    403: PipelineErrorKind.FETCH_FORBIDDEN,
    404: PipelineErrorKind.FETCH_NOT_FOUND,
    429: PipelineErrorKind.FETCH_RATE_LIMITED,
}

_WS_RE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def browser_headers(user_agent: str) -> dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.5",
        "Upgrade-Insecure-Requests": "1",
    }


def extract_main_text(html: str) -> str:
    """
    Best-effort article text from an HTML document.

    Returns "" when nothing readable is left after cleanup.
    """
    soup = BeautifulSoup(html or "", "lxml")

    for selector in NON_CONTENT_SELECTORS:
        for el in soup.select(selector):
            el.extract()

    best = ""
    for selector in CONTENT_SELECTORS:
        text = collapse_whitespace(" ".join(el.get_text(" ") for el in soup.select(selector)))
        if len(text) > len(best):
            best = text

    if not best:
        root = soup.body or soup
        best = collapse_whitespace(root.get_text(" "))

    return best


class PageFetcher:
    def __init__(self, config: EngineFetchConfig, *, client: httpx.AsyncClient | None = None):
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=float(config.timeout_sec),
            follow_redirects=True,
            headers=browser_headers(config.user_agent),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_html(self, url: str) -> str:
        Trace.event("fetch.request", {"url": url})
        try:
            r = await self._client.get(
                url,
                headers=browser_headers(self.config.user_agent),
                timeout=float(self.config.timeout_sec),
            )
            r.raise_for_status()
        except httpx.TimeoutException as e:
            logger.warning("[PageFetcher] Timeout fetching %s: %s", url, e)
            Trace.event("fetch.error", {"url": url, "kind": PipelineErrorKind.FETCH_TIMEOUT.value})
            raise PipelineError(PipelineErrorKind.FETCH_TIMEOUT, detail=str(e) or "timeout") from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            kind = _STATUS_KINDS.get(status, PipelineErrorKind.FETCH_FAILED)
            logger.warning("[PageFetcher] HTTP %s fetching %s", status, url)
            Trace.event("fetch.error", {"url": url, "status": status, "kind": kind.value})
            raise PipelineError(kind, detail=f"HTTP {status}", upstream_status=status) from e
        except httpx.HTTPError as e:
            logger.warning("[PageFetcher] %s fetching %s: %s", type(e).__name__, url, e)
            Trace.event("fetch.error", {"url": url, "kind": PipelineErrorKind.FETCH_FAILED.value})
            raise PipelineError(PipelineErrorKind.FETCH_FAILED, detail=f"{type(e).__name__}: {e}") from e

        Trace.event("fetch.response", {"url": url, "status": r.status_code, "chars": len(r.text)})
        return r.text

    async def fetch_text(self, url: str) -> str:
        html = await self.fetch_html(url)
        text = extract_main_text(html)
        logger.debug("[PageFetcher] Extracted %d chars from %s", len(text), url)
        return text
