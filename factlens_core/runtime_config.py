# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any, Optional


def _parse_bool(raw: Any, *, default: bool) -> bool:
    if raw is None:
        return default
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if not s:
        return default
    if s in ("1", "true", "yes", "y", "on"):
        return True
    if s in ("0", "false", "no", "n", "off"):
        return False
    return default


def _parse_int(raw: Any, *, default: int, min_v: int, max_v: int) -> int:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, int):
            v = raw
        else:
            v = int(str(raw).strip())
    except (TypeError, ValueError):
        v = default
    return max(min_v, min(max_v, v))


def _parse_float(raw: Any, *, default: float, min_v: float, max_v: float) -> float:
    try:
        if raw is None:
            v = default
        elif isinstance(raw, (int, float)):
            v = float(raw)
        else:
            v = float(str(raw).strip())
    except (TypeError, ValueError):
        v = default
    return max(min_v, min(max_v, v))


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)


@dataclass(frozen=True)
class EngineFeatureFlags:
    # Trace is a local-only debug feature; it is enabled by default and can be disabled via env.
    trace_enabled: bool = True
    # Directory-based citation expansion after the verdict is recovered.
    source_expansion: bool = True


@dataclass(frozen=True)
class EngineDebugFlags:
    log_prompts: bool = False
    raw_log_max_chars: int = 2000


@dataclass(frozen=True)
class EngineLLMConfig:
    timeout_sec: float = 60.0
    max_output_tokens: int = 4096
    api_version: str = "2023-06-01"


@dataclass(frozen=True)
class EngineFetchConfig:
    timeout_sec: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass(frozen=True)
class EngineInputConfig:
    max_image_bytes: int = 5 * 1024 * 1024
    max_content_chars: int = 60_000


@dataclass(frozen=True)
class EngineSourceConfig:
    probe_timeout_sec: float = 5.0
    probe_concurrency: int = 32
    max_claims: int = 3
    max_sources_per_claim: int = 3
    max_final_sources: int = 3
    # Optional JSON file replacing the built-in trusted source directory.
    directory_path: Optional[str] = None


@dataclass(frozen=True)
class EngineRuntimeConfig:
    llm: EngineLLMConfig
    fetch: EngineFetchConfig
    input: EngineInputConfig
    sources: EngineSourceConfig
    features: EngineFeatureFlags
    debug: EngineDebugFlags

    @staticmethod
    def defaults() -> "EngineRuntimeConfig":
        return EngineRuntimeConfig(
            llm=EngineLLMConfig(),
            fetch=EngineFetchConfig(),
            input=EngineInputConfig(),
            sources=EngineSourceConfig(),
            features=EngineFeatureFlags(),
            debug=EngineDebugFlags(),
        )

    @staticmethod
    def load_from_env() -> "EngineRuntimeConfig":
        llm = EngineLLMConfig(
            timeout_sec=_parse_float(os.getenv("FACTLENS_LLM_TIMEOUT"), default=60.0, min_v=5.0, max_v=300.0),
            max_output_tokens=_parse_int(
                os.getenv("FACTLENS_LLM_MAX_OUTPUT_TOKENS"), default=4096, min_v=256, max_v=16_384
            ),
            api_version=(os.getenv("FACTLENS_LLM_API_VERSION") or "2023-06-01").strip(),
        )

        fetch = EngineFetchConfig(
            timeout_sec=_parse_float(os.getenv("FACTLENS_FETCH_TIMEOUT"), default=10.0, min_v=1.0, max_v=60.0),
            user_agent=(os.getenv("FACTLENS_FETCH_USER_AGENT") or DEFAULT_USER_AGENT).strip(),
        )

        input_cfg = EngineInputConfig(
            max_image_bytes=_parse_int(
                os.getenv("FACTLENS_MAX_IMAGE_BYTES"), default=5 * 1024 * 1024, min_v=1024, max_v=20 * 1024 * 1024
            ),
            max_content_chars=_parse_int(
                os.getenv("FACTLENS_MAX_CONTENT_CHARS"), default=60_000, min_v=1_000, max_v=400_000
            ),
        )

        sources = EngineSourceConfig(
            probe_timeout_sec=_parse_float(os.getenv("FACTLENS_PROBE_TIMEOUT"), default=5.0, min_v=0.5, max_v=30.0),
            probe_concurrency=_parse_int(os.getenv("FACTLENS_PROBE_CONCURRENCY"), default=32, min_v=1, max_v=128),
            max_claims=_parse_int(os.getenv("FACTLENS_MAX_CLAIMS"), default=3, min_v=1, max_v=3),
            max_sources_per_claim=_parse_int(
                os.getenv("FACTLENS_MAX_SOURCES_PER_CLAIM"), default=3, min_v=1, max_v=10
            ),
            max_final_sources=_parse_int(os.getenv("FACTLENS_MAX_FINAL_SOURCES"), default=3, min_v=1, max_v=3),
            directory_path=(os.getenv("FACTLENS_SOURCE_DIRECTORY") or "").strip() or None,
        )

        features = EngineFeatureFlags(
            trace_enabled=not _parse_bool(os.getenv("FACTLENS_TRACE_DISABLE"), default=False),
            source_expansion=_parse_bool(os.getenv("FACTLENS_SOURCE_EXPANSION"), default=True),
        )

        debug = EngineDebugFlags(
            log_prompts=_parse_bool(os.getenv("FACTLENS_ENGINE_LOG_PROMPTS"), default=False),
            raw_log_max_chars=_parse_int(os.getenv("FACTLENS_RAW_LOG_MAX_CHARS"), default=2000, min_v=100, max_v=50_000),
        )

        return EngineRuntimeConfig(
            llm=llm,
            fetch=fetch,
            input=input_cfg,
            sources=sources,
            features=features,
            debug=debug,
        )

    def to_safe_log_dict(self) -> dict[str, Any]:
        return {
            "features": {
                "trace_enabled": bool(self.features.trace_enabled),
                "source_expansion": bool(self.features.source_expansion),
            },
            "debug": {
                "log_prompts": bool(self.debug.log_prompts),
                "raw_log_max_chars": int(self.debug.raw_log_max_chars),
            },
            "llm": {
                "timeout_sec": float(self.llm.timeout_sec),
                "max_output_tokens": int(self.llm.max_output_tokens),
                "api_version": self.llm.api_version,
            },
            "fetch": {
                "timeout_sec": float(self.fetch.timeout_sec),
            },
            "input": {
                "max_image_bytes": int(self.input.max_image_bytes),
                "max_content_chars": int(self.input.max_content_chars),
            },
            "sources": {
                "probe_timeout_sec": float(self.sources.probe_timeout_sec),
                "probe_concurrency": int(self.sources.probe_concurrency),
                "max_claims": int(self.sources.max_claims),
                "max_sources_per_claim": int(self.sources.max_sources_per_claim),
                "max_final_sources": int(self.sources.max_final_sources),
                "custom_directory": bool(self.sources.directory_path),
            },
        }
