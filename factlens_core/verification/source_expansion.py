# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Citation expansion from the trusted source directory.

For each key claim (at most max_claims) every directory entry yields one
candidate site-search URL. All candidates are probed concurrently; per claim
the first max_sources_per_claim reachable candidates in directory order are
accepted. Acceptance only advances over resolved probes, so a slow probe for a
higher-ranked domain is never skipped in favour of a faster lower-ranked one.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Protocol

from factlens_core.runtime_config import EngineSourceConfig
from factlens_core.schema.verdict import SourceCitation, Verdict
from factlens_core.tools.trusted_sources import SourceDirectory
from factlens_core.utils.trace import Trace

logger = logging.getLogger(__name__)


class ReachabilityProbe(Protocol):
    async def is_reachable(self, url: str) -> bool:
        ...


def merge_citations(*groups: Iterable[SourceCitation], limit: int) -> list[SourceCitation]:
    """Concatenate, drop repeated (title, url, relevance) triples, keep the first `limit`."""
    seen: set[tuple[str, str, str]] = set()
    merged: list[SourceCitation] = []
    for group in groups:
        for citation in group:
            key = citation.key()
            if key in seen:
                continue
            seen.add(key)
            merged.append(citation)
    return merged[:limit]


class SourceExpander:
    def __init__(self, directory: SourceDirectory, prober: ReachabilityProbe, config: EngineSourceConfig):
        self.directory = directory
        self.prober = prober
        self.config = config

    async def _accept_for_claim(self, claim: str) -> list[SourceCitation]:
        candidates = self.directory.candidates_for(claim)
        quota = self.config.max_sources_per_claim
        tasks = [asyncio.create_task(self.prober.is_reachable(c.url)) for c in candidates]
        accepted: list[SourceCitation] = []
        try:
            for candidate, task in zip(candidates, tasks):
                if len(accepted) >= quota:
                    break
                if await task:
                    accepted.append(candidate)
        finally:
            pending = [t for t in tasks if not t.done()]
            for t in pending:
                t.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            if pending:
                logger.debug("[SourceExpander] Cancelled %d outstanding probes for claim", len(pending))
        return accepted

    async def _expand(self, verdict: Verdict) -> Verdict:
        claims = [c for c in verdict.key_claims if c and c.strip()][: self.config.max_claims]
        if not claims:
            return verdict.with_sources(verdict.sources[: self.config.max_final_sources])

        Trace.event("sources.start", {"claims": len(claims), "directory_size": len(self.directory)})
        claim_tasks = [asyncio.create_task(self._accept_for_claim(c)) for c in claims]
        try:
            per_claim = await asyncio.gather(*claim_tasks)
        finally:
            for t in claim_tasks:
                if not t.done():
                    t.cancel()
            await asyncio.gather(*claim_tasks, return_exceptions=True)

        sources = merge_citations(verdict.sources, *per_claim, limit=self.config.max_final_sources)
        Trace.event("sources.done", {
            "accepted_per_claim": [len(a) for a in per_claim],
            "final": [s.url for s in sources],
        })
        logger.debug(
            "[SourceExpander] %d claims, accepted %s, %d final sources",
            len(claims), [len(a) for a in per_claim], len(sources),
        )
        return verdict.with_sources(sources)

    async def expand(self, verdict: Verdict) -> Verdict:
        """Return the verdict with expanded citations. Failures fall back to the original sources."""
        try:
            return await self._expand(verdict)
        except Exception as e:
            logger.warning("[SourceExpander] Expansion failed, keeping original sources: %s", e)
            Trace.event("sources.error", {"error_type": type(e).__name__, "error": str(e)[:200]})
            return verdict.with_sources(verdict.sources[: self.config.max_final_sources])
