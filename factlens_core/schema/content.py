# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors
"""
Content models: what the caller hands in and what the normalizer hands on.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from factlens_core.errors import PipelineError, PipelineErrorKind
from factlens_core.schema.serialization import SchemaModel


class ContentKind(str, Enum):
    TEXT = "text"
    URL = "url"
    IMAGE = "image"


class ContentRequest(SchemaModel):
    """
    One unit of user content to check.

    Only the structural invariants live here (known kind, non-empty payload).
    URL syntax and image budget are checked by the normalizer, which knows
    the runtime limits.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: ContentKind
    payload: str = Field(min_length=1)

    @classmethod
    def from_payload(cls, body: Any) -> "ContentRequest":
        """Build from the boundary shape `{"type": ..., "content": ...}`."""
        if not isinstance(body, dict):
            raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Request body must be a JSON object")

        kind = body.get("type")
        content = body.get("content")
        if not kind or not content:
            raise PipelineError(PipelineErrorKind.INVALID_INPUT)
        if not isinstance(content, str):
            raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Field 'content' must be a string")

        try:
            content_kind = ContentKind(str(kind).strip().lower())
        except ValueError:
            raise PipelineError(
                PipelineErrorKind.INVALID_INPUT,
                f"Unsupported content type: {kind!r}. Expected one of: text, url, image",
            ) from None

        return cls(kind=content_kind, payload=content)


@dataclass(frozen=True)
class ImagePart:
    """Inline image forwarded to the reasoning service as-is."""

    media_type: str
    data: str  # base64, no data-URI prefix

    def as_data_uri(self) -> str:
        return f"data:{self.media_type};base64,{self.data}"


@dataclass(frozen=True)
class NormalizedContent:
    kind: ContentKind
    text: str
    image: ImagePart | None = None
    source_url: str | None = None
