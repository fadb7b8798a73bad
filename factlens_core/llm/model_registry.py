# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

from enum import Enum


class ModelID(str, Enum):
    """Canonical model identifiers per reasoning provider."""

    # Messages API provider
    MESSAGES_TEXT = "claude-3-haiku-20240307"
    MESSAGES_VISION = "claude-3-5-sonnet-20240620"

    # OpenAI-compatible provider
    OPENAI_TEXT = "gpt-4o-mini"
    OPENAI_VISION = "gpt-4o"


DEFAULT_MODELS: dict[str, tuple[ModelID, ModelID]] = {
    "messages": (ModelID.MESSAGES_TEXT, ModelID.MESSAGES_VISION),
    "openai": (ModelID.OPENAI_TEXT, ModelID.OPENAI_VISION),
}


def default_model(provider: str, *, vision: bool) -> str:
    text_model, vision_model = DEFAULT_MODELS.get(provider, DEFAULT_MODELS["messages"])
    return (vision_model if vision else text_model).value
