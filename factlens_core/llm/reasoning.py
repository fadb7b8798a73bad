# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Reasoning service capability.

The reasoning service is a black box: it takes a prompt and returns free-form
text that is supposed to contain one JSON object. Anything with an async
`invoke(request) -> str` satisfies the interface, which keeps the recovery
stage testable against fakes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from factlens_core.schema.content import ImagePart


@dataclass(frozen=True)
class ReasoningRequest:
    model: str
    system: str
    user_text: str
    image: ImagePart | None = None
    max_output_tokens: int = 4096


@runtime_checkable
class ReasoningService(Protocol):
    async def invoke(self, request: ReasoningRequest) -> str:
        """Return the raw response text or raise a PipelineError of an upstream kind."""
        ...

    async def close(self) -> None:
        ...
