# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors


import json

import httpx
import pytest

from factlens_core.config import FactLensConfig
from factlens_core.llm.reasoning import ReasoningRequest
from factlens_core.runtime_config import EngineRuntimeConfig


class FakeReasoning:
    """Reasoning service double: returns canned strings and records requests."""

    def __init__(self, *responses: str | Exception):
        self.responses = list(responses)
        self.requests: list[ReasoningRequest] = []
        self.closed = False

    async def invoke(self, request: ReasoningRequest) -> str:
        self.requests.append(request)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


class FakeProber:
    """Reachability double keyed by domain substring."""

    def __init__(self, reachable_domains=()):
        self.reachable_domains = set(reachable_domains)
        self.calls: list[str] = []

    async def is_reachable(self, url: str) -> bool:
        self.calls.append(url)
        return any(d in url for d in self.reachable_domains)

    async def close(self) -> None:
        pass


def verdict_payload(**overrides) -> dict:
    data = {
        "transcription": "A post claiming the moon landing was staged.",
        "reliability_score": 2,
        "reliability_explanation": "Contradicted by extensive documentation.",
        "is_factual": False,
        "analysis": "The Apollo 11 landing is among the best documented events of the century.",
        "key_claims": ["The 1969 moon landing was staged"],
        "false_claims": [{"claim": "The landing was filmed in a studio", "correction": "It was broadcast live from the Moon"}],
        "sources": [{"title": "NASA", "url": "https://www.nasa.gov/apollo11", "relevance": "Mission record"}],
    }
    data.update(overrides)
    return data


def verdict_json(**overrides) -> str:
    return json.dumps(verdict_payload(**overrides))


def mock_http_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)


@pytest.fixture(autouse=True)
def _no_local_trace(monkeypatch):
    """Keep trace files out of the working tree unless a test opts in."""
    monkeypatch.delenv("FACTLENS_ENV", raising=False)
    monkeypatch.delenv("ENV", raising=False)


@pytest.fixture
def runtime():
    return EngineRuntimeConfig.defaults()


@pytest.fixture
def factlens_config(runtime):
    return FactLensConfig(anthropic_api_key="test-key", runtime=runtime)
