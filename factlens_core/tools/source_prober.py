# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

from __future__ import annotations

import asyncio
import logging

import httpx

from factlens_core.runtime_config import DEFAULT_USER_AGENT, EngineSourceConfig
from factlens_core.tools.page_fetcher import browser_headers

logger = logging.getLogger(__name__)


class SourceProber:
    """
    Reachability check for candidate source URLs.

    A URL is reachable when a HEAD request (redirects followed) answers with
    a status below 400 within the probe timeout. Every other outcome,
    including transport errors, counts as unreachable.
    """

    def __init__(
        self,
        config: EngineSourceConfig,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        client: httpx.AsyncClient | None = None,
    ):
        self.timeout_s = float(config.probe_timeout_sec)
        self._sem = asyncio.Semaphore(max(1, int(config.probe_concurrency)))
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.timeout_s,
            follow_redirects=True,
            limits=httpx.Limits(max_connections=64, max_keepalive_connections=16),
            headers=browser_headers(user_agent),
        )

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _head_status(self, url: str) -> int:
        resp = await self._client.head(url)
        return resp.status_code

    async def is_reachable(self, url: str) -> bool:
        async with self._sem:
            try:
                status = await asyncio.wait_for(self._head_status(url), timeout=self.timeout_s)
            except asyncio.TimeoutError:
                logger.debug("[Prober] Timeout after %.1fs: %s", self.timeout_s, url)
                return False
            except Exception as e:
                logger.debug("[Prober] %s for %s: %s", type(e).__name__, url, e)
                return False
        return status < 400
