# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Reasoning client for Messages-API style endpoints.

Single attempt per call: the call is not cheap to repeat and upstream rate
limits have to surface to the caller as they happen.
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from factlens_core.errors import PipelineError, PipelineErrorKind
from factlens_core.llm.failures import (
    classify_upstream_failure,
    failure_to_trace_data,
    kind_for_status,
    upstream_error,
)
from factlens_core.llm.reasoning import ReasoningRequest
from factlens_core.utils.trace import Trace

logger = logging.getLogger(__name__)

DEFAULT_MESSAGES_BASE_URL = "https://api.anthropic.com"
DEFAULT_API_VERSION = "2023-06-01"


def _error_message_from_body(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return (response.text or "")[:300] or None
    if isinstance(body, dict):
        err = body.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return err["message"]
        if isinstance(err, str):
            return err
    return None


def extract_text_content(data: Any) -> str | None:
    """First non-empty text block of a Messages API response body."""
    if not isinstance(data, dict):
        return None
    blocks = data.get("content")
    if not isinstance(blocks, list):
        return None
    for block in blocks:
        if isinstance(block, dict) and block.get("type", "text") == "text":
            text = block.get("text")
            if isinstance(text, str) and text.strip():
                return text
    return None


class MessagesReasoningClient:
    def __init__(
        self,
        *,
        api_key: str,
        base_url: str | None = None,
        api_version: str = DEFAULT_API_VERSION,
        timeout_s: float = 60.0,
        client: httpx.AsyncClient | None = None,
    ):
        if not api_key:
            raise ValueError("Missing API key for the Messages reasoning provider")
        self.endpoint = (base_url or DEFAULT_MESSAGES_BASE_URL).rstrip("/") + "/v1/messages"
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=float(timeout_s))
        self._timeout_s = float(timeout_s)
        self._headers = {
            "x-api-key": api_key,
            "anthropic-version": api_version,
            "content-type": "application/json",
        }

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def build_payload(request: ReasoningRequest) -> dict:
        content: list[dict] = []
        if request.image is not None:
            content.append({
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": request.image.media_type,
                    "data": request.image.data,
                },
            })
        content.append({"type": "text", "text": request.user_text})
        return {
            "model": request.model,
            "max_tokens": int(request.max_output_tokens),
            "system": request.system,
            "messages": [{"role": "user", "content": content}],
        }

    async def invoke(self, request: ReasoningRequest) -> str:
        payload = self.build_payload(request)
        Trace.event("reasoning.request", {
            "provider": "messages",
            "model": request.model,
            "user_chars": len(request.user_text),
            "has_image": request.image is not None,
        })

        start = time.time()
        try:
            r = await self._client.post(self.endpoint, json=payload, headers=self._headers, timeout=self._timeout_s)
            r.raise_for_status()
        except httpx.TimeoutException as e:
            err = upstream_error(PipelineErrorKind.UPSTREAM_UNAVAILABLE, detail=f"timeout: {e}")
            self._log_failure(err, e)
            raise err from e
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            err = upstream_error(
                kind_for_status(status),
                upstream_message=_error_message_from_body(e.response),
                status_code=status,
                detail=f"HTTP {status}",
            )
            self._log_failure(err, e)
            raise err from e
        except httpx.HTTPError as e:
            err = upstream_error(classify_upstream_failure(e), upstream_message=str(e), detail=type(e).__name__)
            self._log_failure(err, e)
            raise err from e

        latency_ms = int((time.time() - start) * 1000)
        try:
            data = r.json()
        except ValueError as e:
            err = PipelineError(PipelineErrorKind.UPSTREAM_PROTOCOL_ERROR, detail="response body is not JSON")
            self._log_failure(err, e)
            raise err from e

        text = extract_text_content(data)
        if text is None:
            err = PipelineError(PipelineErrorKind.UPSTREAM_PROTOCOL_ERROR, detail="no text content in response")
            self._log_failure(err)
            raise err

        Trace.event("reasoning.response", {
            "provider": "messages",
            "model": data.get("model", request.model),
            "content_chars": len(text),
            "latency_ms": latency_ms,
            "stop_reason": data.get("stop_reason"),
        })
        return text

    @staticmethod
    def _log_failure(err: PipelineError, exc: Exception | None = None) -> None:
        logger.warning("[MessagesClient] Call failed: %s", err)
        Trace.event("reasoning.error", {"provider": "messages", **failure_to_trace_data(err, exc)})
