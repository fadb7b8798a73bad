# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

import os
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from factlens_core.runtime_config import EngineRuntimeConfig

ReasoningProvider = Literal["messages", "openai"]


class FactLensConfig(BaseModel):
    """
    Configuration for the FactLens Core Engine.
    Decouples the engine from environment variables.
    """

    model_config = ConfigDict(frozen=True)

    # Reasoning service
    reasoning_provider: ReasoningProvider = Field("messages", description="Which reasoning API dialect to speak")
    anthropic_api_key: Optional[str] = Field(None, description="API key for the Messages API provider")
    openai_api_key: Optional[str] = Field(None, description="API key for the OpenAI-compatible provider")
    reasoning_base_url: Optional[str] = Field(None, description="Override for the reasoning endpoint base URL")

    # Model overrides (None means use the registry default for the provider)
    text_model: Optional[str] = Field(None, description="Model used for text and URL content")
    vision_model: Optional[str] = Field(None, description="Vision-capable model used for images")

    runtime: EngineRuntimeConfig = Field(default_factory=EngineRuntimeConfig.defaults)

    @property
    def reasoning_api_key(self) -> Optional[str]:
        if self.reasoning_provider == "openai":
            return self.openai_api_key
        return self.anthropic_api_key

    @classmethod
    def from_env(cls) -> "FactLensConfig":
        provider = (os.getenv("FACTLENS_REASONING_PROVIDER") or "messages").strip().lower()
        if provider not in ("messages", "openai"):
            provider = "messages"
        return cls(
            reasoning_provider=provider,
            anthropic_api_key=os.getenv("ANTHROPIC_API_KEY"),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            reasoning_base_url=os.getenv("FACTLENS_REASONING_BASE_URL") or None,
            text_model=os.getenv("FACTLENS_TEXT_MODEL") or None,
            vision_model=os.getenv("FACTLENS_VISION_MODEL") or None,
            runtime=EngineRuntimeConfig.load_from_env(),
        )
