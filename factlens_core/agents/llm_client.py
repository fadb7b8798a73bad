# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors
#
# FactLens Engine is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with FactLens Engine. If not, see <https://www.gnu.org/licenses/>.

"""
Reasoning client for OpenAI-compatible Chat Completions endpoints.

- Images are sent as inline data-URI `image_url` parts
- The SDK's own retries are disabled: one attempt per check
- Transport failures are mapped onto the upstream error kinds
"""

from __future__ import annotations

import logging
import time

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, OpenAIError

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


def _status_error_message(exc: APIStatusError) -> str | None:
    body = exc.body
    if isinstance(body, dict):
        msg = body.get("message")
        if isinstance(msg, str):
            return msg
        err = body.get("error")
        if isinstance(err, dict) and isinstance(err.get("message"), str):
            return err["message"]
    return exc.message


class LLMClient:
    """
    OpenAI SDK wrapper implementing the reasoning service interface.

    Example:
        client = LLMClient(openai_api_key="sk-...")
        raw = await client.invoke(request)
    """

    def __init__(
        self,
        *,
        openai_api_key: str | None = None,
        base_url: str | None = None,
        default_timeout: float = 60.0,
        client: AsyncOpenAI | None = None,
    ):
        self.client = client or AsyncOpenAI(
            api_key=openai_api_key,
            base_url=base_url,
            timeout=default_timeout,
            max_retries=0,
        )
        self.default_timeout = default_timeout

    @staticmethod
    def build_messages(request: ReasoningRequest) -> list[dict]:
        if request.image is not None:
            user_content: list[dict] | str = [
                {"type": "image_url", "image_url": {"url": request.image.as_data_uri()}},
                {"type": "text", "text": request.user_text},
            ]
        else:
            user_content = request.user_text
        return [
            {"role": "system", "content": request.system},
            {"role": "user", "content": user_content},
        ]

    async def invoke(self, request: ReasoningRequest) -> str:
        Trace.event("reasoning.request", {
            "provider": "openai",
            "model": request.model,
            "user_chars": len(request.user_text),
            "has_image": request.image is not None,
        })

        start = time.time()
        try:
            response = await self.client.chat.completions.create(
                model=request.model,
                messages=self.build_messages(request),
                max_tokens=int(request.max_output_tokens),
                timeout=self.default_timeout,
            )
        except APITimeoutError as e:
            err = upstream_error(PipelineErrorKind.UPSTREAM_UNAVAILABLE, detail=f"timeout: {e}")
            self._log_failure(err, e)
            raise err from e
        except APIConnectionError as e:
            err = upstream_error(PipelineErrorKind.UPSTREAM_UNAVAILABLE, detail=f"connection: {e}")
            self._log_failure(err, e)
            raise err from e
        except APIStatusError as e:
            err = upstream_error(
                kind_for_status(e.status_code),
                upstream_message=_status_error_message(e),
                status_code=e.status_code,
                detail=f"HTTP {e.status_code}",
            )
            self._log_failure(err, e)
            raise err from e
        except OpenAIError as e:
            err = upstream_error(classify_upstream_failure(e), upstream_message=str(e), detail=type(e).__name__)
            self._log_failure(err, e)
            raise err from e

        latency_ms = int((time.time() - start) * 1000)
        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices and choices[0].message else None
        if not isinstance(content, str) or not content.strip():
            err = PipelineError(PipelineErrorKind.UPSTREAM_PROTOCOL_ERROR, detail="no text content in response")
            self._log_failure(err)
            raise err

        Trace.event("reasoning.response", {
            "provider": "openai",
            "model": getattr(response, "model", request.model),
            "content_chars": len(content),
            "latency_ms": latency_ms,
            "finish_reason": getattr(choices[0], "finish_reason", None),
        })
        return content

    @staticmethod
    def _log_failure(err: PipelineError, exc: Exception | None = None) -> None:
        logger.warning("[LLMClient] Call failed: %s", err)
        Trace.event("reasoning.error", {"provider": "openai", **failure_to_trace_data(err, exc)})

    async def close(self) -> None:
        """Clean up resources."""
        if self.client:
            await self.client.close()
