# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

# FactLens Engine - main entry point

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any
from uuid import uuid4

from factlens_core.agents.llm_client import LLMClient
from factlens_core.agents.messages_client import MessagesReasoningClient
from factlens_core.agents.prompts import PromptBuilder
from factlens_core.config import FactLensConfig
from factlens_core.errors import PipelineError, PipelineErrorKind
from factlens_core.llm.reasoning import ReasoningService
from factlens_core.schema.content import ContentRequest
from factlens_core.schema.verdict import Verdict
from factlens_core.tools.page_fetcher import PageFetcher
from factlens_core.tools.source_prober import SourceProber
from factlens_core.tools.trusted_sources import SourceDirectory
from factlens_core.utils.trace import Trace
from factlens_core.verification.normalizer import ContentNormalizer
from factlens_core.verification.recovery import ResponseRecovery
from factlens_core.verification.source_expansion import ReachabilityProbe, SourceExpander

logger = logging.getLogger(__name__)


def build_reasoning_client(config: FactLensConfig) -> ReasoningService:
    """Reasoning client for the configured provider. Raises ValueError without an API key."""
    llm = config.runtime.llm
    api_key = config.reasoning_api_key
    if config.reasoning_provider == "openai":
        if not api_key:
            raise ValueError("Missing OPENAI_API_KEY for the openai reasoning provider")
        return LLMClient(
            openai_api_key=api_key,
            base_url=config.reasoning_base_url,
            default_timeout=llm.timeout_sec,
        )
    return MessagesReasoningClient(
        api_key=api_key or "",
        base_url=config.reasoning_base_url,
        api_version=llm.api_version,
        timeout_s=llm.timeout_sec,
    )


def load_source_directory(config: FactLensConfig) -> SourceDirectory:
    path = config.runtime.sources.directory_path
    if path:
        directory = SourceDirectory.from_file(path)
        logger.info("[Engine] Loaded %d trusted sources from %s", len(directory), path)
        return directory
    return SourceDirectory.default()


class FactLensEngine:
    """
    The main entry point for the FactLens checking pipeline.

    normalize -> build prompt -> reasoning call -> recover -> expand sources.

    Collaborators may be injected (tests, alternative providers); anything not
    injected is built from the config and closed by close().
    """

    def __init__(
        self,
        config: FactLensConfig,
        *,
        reasoning: ReasoningService | None = None,
        fetcher: PageFetcher | None = None,
        prober: ReachabilityProbe | None = None,
        directory: SourceDirectory | None = None,
    ):
        self.config = config
        runtime = config.runtime

        if directory is None:
            directory = load_source_directory(config)

        self._owned: list[Any] = []
        if reasoning is None:
            reasoning = build_reasoning_client(config)
            self._owned.append(reasoning)
        if fetcher is None:
            fetcher = PageFetcher(runtime.fetch)
            self._owned.append(fetcher)
        if prober is None:
            prober = SourceProber(runtime.sources, user_agent=runtime.fetch.user_agent)
            self._owned.append(prober)

        self.reasoning = reasoning
        self.normalizer = ContentNormalizer(runtime.input, fetcher)
        self.prompts = PromptBuilder(
            provider=config.reasoning_provider,
            text_model=config.text_model,
            vision_model=config.vision_model,
            max_output_tokens=runtime.llm.max_output_tokens,
        )
        self.recovery = ResponseRecovery(raw_log_max_chars=runtime.debug.raw_log_max_chars)
        self.expander = SourceExpander(directory, prober, runtime.sources)

        logger.debug("Effective config: %s", json.dumps(runtime.to_safe_log_dict(), ensure_ascii=False))

    async def close(self) -> None:
        for resource in self._owned:
            await resource.close()
        self._owned = []

    async def __aenter__(self) -> "FactLensEngine":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def _run(self, request: ContentRequest) -> Verdict:
        runtime = self.config.runtime

        content = await self.normalizer.normalize(request)
        Trace.event("engine.normalized", {"kind": content.kind.value, "text_len": len(content.text)})

        reasoning_request = self.prompts.build_request(content)
        if runtime.debug.log_prompts:
            logger.debug("[Engine] System prompt: %s", reasoning_request.system)
            logger.debug("[Engine] User prompt: %s", reasoning_request.user_text)

        raw = await self.reasoning.invoke(reasoning_request)
        Trace.event("engine.reasoning.done", {"model": reasoning_request.model, "raw_chars": len(raw)})

        verdict = self.recovery.recover(raw)

        if verdict.key_claims and runtime.features.source_expansion:
            verdict = await self.expander.expand(verdict)

        max_sources = runtime.sources.max_final_sources
        if len(verdict.sources) > max_sources:
            verdict = verdict.with_sources(verdict.sources[:max_sources])
        return verdict

    async def run(self, request: ContentRequest | dict[str, Any]) -> Verdict:
        """
        Check one piece of content.

        Returns the Verdict; raises PipelineError for every failure.
        """
        if not isinstance(request, ContentRequest):
            request = ContentRequest.from_payload(request)

        trace_id = f"{datetime.now().strftime('%Y-%m-%d_%H-%M-%S')}_{str(uuid4())[:6]}"
        Trace.start(trace_id, runtime=self.config.runtime)
        try:
            Trace.event("engine.run.start", {"kind": request.kind.value, "payload_len": len(request.payload)})
            logger.info("[Engine] Checking %s content (%d chars)", request.kind.value, len(request.payload))
            try:
                verdict = await self._run(request)
            except PipelineError as e:
                logger.warning("[Engine] Check failed: %s", e)
                Trace.event("engine.run.error", {"kind": e.kind.value, "status": e.status_code, "detail": e.detail})
                raise
            except Exception as e:
                logger.exception("[Engine] Unexpected failure during check")
                Trace.event("engine.run.error", {"kind": PipelineErrorKind.INTERNAL_ERROR.value, "error": str(e)})
                raise PipelineError(PipelineErrorKind.INTERNAL_ERROR, detail=f"{type(e).__name__}: {e}") from e

            logger.info(
                "[Engine] Verdict: score=%d factual=%s sources=%d",
                verdict.reliability_score, verdict.is_factual, len(verdict.sources),
            )
            Trace.event("engine.run.done", {
                "reliability_score": verdict.reliability_score,
                "is_factual": verdict.is_factual,
                "sources": len(verdict.sources),
            })
            return verdict
        finally:
            Trace.stop()

    async def check(self, payload: Any) -> tuple[int, dict[str, Any]]:
        """Boundary form of run(): (status_code, body). Pipeline failures become error bodies."""
        try:
            verdict = await self.run(payload)
        except PipelineError as e:
            return e.to_response()
        return 200, verdict.to_response()
