# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

import pytest

from factlens_core.config import FactLensConfig
from factlens_core.runtime_config import EngineRuntimeConfig


def test_defaults_match_documented_limits():
    cfg = EngineRuntimeConfig.defaults()
    assert cfg.llm.timeout_sec == 60.0
    assert cfg.llm.max_output_tokens == 4096
    assert cfg.fetch.timeout_sec == 10.0
    assert cfg.sources.probe_timeout_sec == 5.0
    assert cfg.sources.max_claims == 3
    assert cfg.sources.max_sources_per_claim == 3
    assert cfg.sources.max_final_sources == 3
    assert cfg.features.source_expansion is True


def test_env_defaults_equal_code_defaults(monkeypatch):
    for name in ("FACTLENS_LLM_TIMEOUT", "FACTLENS_PROBE_CONCURRENCY", "FACTLENS_MAX_FINAL_SOURCES"):
        monkeypatch.delenv(name, raising=False)
    assert EngineRuntimeConfig.load_from_env().sources == EngineRuntimeConfig.defaults().sources


def test_reachability_concurrency_is_clamped(monkeypatch):
    monkeypatch.setenv("FACTLENS_PROBE_CONCURRENCY", "999")
    assert EngineRuntimeConfig.load_from_env().sources.probe_concurrency == 128

    monkeypatch.setenv("FACTLENS_PROBE_CONCURRENCY", "0")
    assert EngineRuntimeConfig.load_from_env().sources.probe_concurrency == 1


def test_final_sources_never_exceed_three(monkeypatch):
    monkeypatch.setenv("FACTLENS_MAX_FINAL_SOURCES", "10")
    assert EngineRuntimeConfig.load_from_env().sources.max_final_sources == 3


def test_garbage_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("FACTLENS_FETCH_TIMEOUT", "soon")
    monkeypatch.setenv("FACTLENS_SOURCE_EXPANSION", "maybe")
    cfg = EngineRuntimeConfig.load_from_env()
    assert cfg.fetch.timeout_sec == 10.0
    assert cfg.features.source_expansion is True


def test_trace_and_expansion_switches(monkeypatch):
    monkeypatch.setenv("FACTLENS_TRACE_DISABLE", "1")
    monkeypatch.setenv("FACTLENS_SOURCE_EXPANSION", "off")
    cfg = EngineRuntimeConfig.load_from_env()
    assert cfg.features.trace_enabled is False
    assert cfg.features.source_expansion is False


def test_safe_log_dict_has_no_user_agent_or_keys(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-secret-value")
    dumped = repr(EngineRuntimeConfig.load_from_env().to_safe_log_dict())
    assert "sk-ant" not in dumped
    assert "Mozilla" not in dumped


def test_debug_settings_are_prompt_logging_and_raw_limit(monkeypatch):
    monkeypatch.setenv("FACTLENS_ENGINE_LOG_PROMPTS", "1")
    monkeypatch.setenv("FACTLENS_RAW_LOG_MAX_CHARS", "500")
    safe = EngineRuntimeConfig.load_from_env().to_safe_log_dict()
    assert safe["debug"] == {"log_prompts": True, "raw_log_max_chars": 500}


def test_factlens_config_from_env(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    monkeypatch.setenv("OPENAI_API_KEY", "oai-key")
    monkeypatch.setenv("FACTLENS_REASONING_PROVIDER", "OpenAI")
    monkeypatch.setenv("FACTLENS_TEXT_MODEL", "gpt-4.1-mini")
    monkeypatch.delenv("FACTLENS_VISION_MODEL", raising=False)

    cfg = FactLensConfig.from_env()
    assert cfg.reasoning_provider == "openai"
    assert cfg.reasoning_api_key == "oai-key"
    assert cfg.text_model == "gpt-4.1-mini"
    assert cfg.vision_model is None


def test_unknown_provider_falls_back_to_messages(monkeypatch):
    monkeypatch.setenv("FACTLENS_REASONING_PROVIDER", "carrier-pigeon")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "ant-key")
    cfg = FactLensConfig.from_env()
    assert cfg.reasoning_provider == "messages"
    assert cfg.reasoning_api_key == "ant-key"


def test_factlens_config_is_frozen():
    cfg = FactLensConfig(anthropic_api_key="k")
    with pytest.raises(Exception):
        cfg.anthropic_api_key = "other"
