# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Prompt templates and reasoning request construction.

Templates are loaded from `factlens_core/locales/*.yml`; a hard-coded English
copy is used when a key is missing so a broken locale file never blocks a check.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from factlens_core.llm.model_registry import default_model
from factlens_core.llm.reasoning import ReasoningRequest
from factlens_core.schema.content import ContentKind, NormalizedContent

logger = logging.getLogger(__name__)

_PROMPTS: dict[str, dict] = {}

LOCALES_PATH = Path(__file__).resolve().parents[1] / "locales"

_FALLBACK_PROMPTS = {
    "prompts.factcheck_system": (
        "You are a professional fact-checker. Focus on finding and verifying the most significant "
        "claims against reliable sources. Return ONLY valid JSON with no additional text."
    ),
    "prompts.image_system": (
        "You are a forensic image analyst and fact-checker. Examine the image for signs of manipulation, "
        "read any visible text, and verify the claims it makes against reliable sources. "
        "Return ONLY valid JSON with no additional text."
    ),
    "prompts.factcheck_user": (
        "Analyze this content for factual accuracy. Extract key claims and search for verification.\n\n"
        "Content to analyze: {content}\n\n"
        "First, identify up to 3 main claims or statements that need verification.\n\n"
        "{output_format}"
    ),
    "prompts.image_user": (
        "Analyze the attached image for factual accuracy.\n\n"
        "Content to analyze: {content}\n\n"
        "First, identify up to 3 main claims the image makes or implies.\n\n"
        "{output_format}"
    ),
    "prompts.output_format": (
        "Return ONLY a JSON object with these keys and no additional text: "
        "transcription (string), reliability_score (integer 1-10), reliability_explanation (string), "
        "is_factual (boolean), analysis (string), key_claims (array of up to 3 strings), "
        "false_claims (array of objects with string keys claim and correction), "
        "sources (array of objects with string keys title, url and relevance)."
    ),
}


def load_prompts(locales_dir: Path | None = None) -> None:
    """Load every `<lang>.yml` file from the locales directory."""
    path = Path(locales_dir) if locales_dir else LOCALES_PATH
    if not path.is_dir():
        logger.warning("[Prompts] Locales directory not found at %s", path)
        return

    for f in sorted(path.glob("*.yml")):
        lang = f.stem
        with open(f, "r", encoding="utf-8") as yf:
            try:
                data = yaml.safe_load(yf)
            except yaml.YAMLError as e:
                logger.warning("[Prompts] YAML parsing failed for %s: %s", f.name, e)
                continue
        if data and isinstance(data, dict) and isinstance(data.get(lang), dict):
            _PROMPTS[lang] = data[lang]

    logger.debug("[Prompts] Loaded prompts for languages: %s", list(_PROMPTS.keys()))


def _lookup(lang_data: dict, key: str) -> str | None:
    node = lang_data
    for part in key.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node if isinstance(node, str) else None


def get_prompt(lang: str, key: str) -> str:
    """Prompt template by dotted key, falling back to English, then to the built-in copy."""
    if not _PROMPTS:
        load_prompts()

    template = _lookup(_PROMPTS.get(lang, {}), key)
    if template is None and lang != "en":
        template = _lookup(_PROMPTS.get("en", {}), key)
    if template is None:
        template = _FALLBACK_PROMPTS.get(key)
    if template is None:
        raise KeyError(f"Prompt key '{key}' not found")
    return template


class PromptBuilder:
    """
    Renders NormalizedContent into a ReasoningRequest.

    Pure: the same content and settings always produce the same request.
    """

    def __init__(
        self,
        *,
        provider: str = "messages",
        text_model: str | None = None,
        vision_model: str | None = None,
        max_output_tokens: int = 4096,
        lang: str = "en",
    ):
        self.provider = provider
        self.text_model = text_model or default_model(provider, vision=False)
        self.vision_model = vision_model or default_model(provider, vision=True)
        self.max_output_tokens = int(max_output_tokens)
        self.lang = lang

    def select_model(self, kind: ContentKind) -> str:
        return self.vision_model if kind == ContentKind.IMAGE else self.text_model

    def build_request(self, content: NormalizedContent, kind: ContentKind | None = None) -> ReasoningRequest:
        kind = kind or content.kind
        is_image = kind == ContentKind.IMAGE

        system = get_prompt(self.lang, "prompts.image_system" if is_image else "prompts.factcheck_system")
        user_template = get_prompt(self.lang, "prompts.image_user" if is_image else "prompts.factcheck_user")
        output_format = get_prompt(self.lang, "prompts.output_format").format()

        user_text = user_template.format(content=content.text, output_format=output_format)

        return ReasoningRequest(
            model=self.select_model(kind),
            system=system.strip(),
            user_text=user_text.strip(),
            image=content.image if is_image else None,
            max_output_tokens=self.max_output_tokens,
        )
