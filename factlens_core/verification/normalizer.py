# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Content normalization.

Turns a ContentRequest into the NormalizedContent handed to the prompt
builder:
- text: whitespace collapsed and trimmed
- url: page fetched once and reduced to its main text
- image: data-URI validated and forwarded untouched as an ImagePart
"""

from __future__ import annotations

import base64
import binascii
import logging

from factlens_core.errors import PipelineError, PipelineErrorKind
from factlens_core.runtime_config import EngineInputConfig
from factlens_core.schema.content import ContentKind, ContentRequest, ImagePart, NormalizedContent
from factlens_core.tools.page_fetcher import PageFetcher, collapse_whitespace
from factlens_core.tools.url_utils import is_valid_public_http_url
from factlens_core.utils.trace import Trace

logger = logging.getLogger(__name__)

DEFAULT_IMAGE_MEDIA_TYPE = "image/jpeg"
SUPPORTED_IMAGE_MEDIA_TYPES = frozenset({"image/jpeg", "image/png", "image/gif", "image/webp"})
_MEDIA_TYPE_ALIASES = {"image/jpg": "image/jpeg", "image/pjpeg": "image/jpeg"}

IMAGE_CONTENT_TEXT = "[Attached image: analyze its visual content and any visible text]"

EMPTY_URL_MESSAGE = (
    "No content could be extracted from the webpage. "
    "Please copy and paste the article text directly."
)


def parse_image_payload(payload: str, *, max_bytes: int) -> ImagePart:
    """
    Validate a base64 image payload (data-URI or bare base64).

    Raises:
        PipelineError(INVALID_INPUT): bad encoding, unsupported type or over budget
    """
    raw = (payload or "").strip()
    media_type = DEFAULT_IMAGE_MEDIA_TYPE

    if raw.startswith("data:"):
        header, sep, data = raw.partition(",")
        if not sep:
            raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Malformed image data URI")
        params = [p.strip().lower() for p in header[len("data:"):].split(";")]
        if "base64" not in params[1:]:
            raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Image data URI must be base64-encoded")
        if params[0]:
            media_type = _MEDIA_TYPE_ALIASES.get(params[0], params[0])
    else:
        data = raw

    if media_type not in SUPPORTED_IMAGE_MEDIA_TYPES:
        raise PipelineError(PipelineErrorKind.INVALID_INPUT, f"Unsupported image type: {media_type}")

    data = "".join(data.split())
    if not data:
        raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Image payload is empty")

    # Cheap upper bound before decoding anything large.
    if (len(data) * 3) // 4 > max_bytes + 3:
        raise PipelineError(PipelineErrorKind.INVALID_INPUT, f"Image exceeds the {max_bytes} byte limit")

    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Image payload is not valid base64") from None

    if not decoded:
        raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Image payload is empty")
    if len(decoded) > max_bytes:
        raise PipelineError(PipelineErrorKind.INVALID_INPUT, f"Image exceeds the {max_bytes} byte limit")

    return ImagePart(media_type=media_type, data=data)


class ContentNormalizer:
    def __init__(self, input_config: EngineInputConfig, fetcher: PageFetcher):
        self.input_config = input_config
        self.fetcher = fetcher

    def _limit(self, text: str) -> str:
        limit = int(self.input_config.max_content_chars)
        if len(text) <= limit:
            return text
        logger.warning("[Normalizer] Content truncated from %d to %d chars", len(text), limit)
        return text[:limit].rstrip()

    async def normalize(self, request: ContentRequest) -> NormalizedContent:
        Trace.event("normalize.start", {"kind": request.kind.value, "payload_chars": len(request.payload)})

        if request.kind == ContentKind.TEXT:
            text = collapse_whitespace(request.payload)
            if not text:
                raise PipelineError(PipelineErrorKind.EMPTY_CONTENT, "Please provide some text to analyze.")
            result = NormalizedContent(kind=request.kind, text=self._limit(text))

        elif request.kind == ContentKind.URL:
            url = request.payload.strip()
            if not is_valid_public_http_url(url):
                raise PipelineError(PipelineErrorKind.INVALID_INPUT, "Please provide a valid http(s) URL.")
            text = await self.fetcher.fetch_text(url)
            if not text:
                raise PipelineError(PipelineErrorKind.EMPTY_CONTENT, EMPTY_URL_MESSAGE, detail=url)
            result = NormalizedContent(kind=request.kind, text=self._limit(text), source_url=url)

        elif request.kind == ContentKind.IMAGE:
            image = parse_image_payload(request.payload, max_bytes=int(self.input_config.max_image_bytes))
            result = NormalizedContent(kind=request.kind, text=IMAGE_CONTENT_TEXT, image=image)

        else:
            raise PipelineError(PipelineErrorKind.INVALID_INPUT, f"Unsupported content type: {request.kind}")

        Trace.event("normalize.done", {
            "kind": result.kind.value,
            "text_chars": len(result.text),
            "has_image": result.image is not None,
        })
        return result
