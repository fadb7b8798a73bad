# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Reasoning call failure classification.

Maps transport-level outcomes onto the upstream error kinds:
- UPSTREAM_UNAVAILABLE: timeouts, connection problems, 5xx
- UPSTREAM_REJECTED: any other 4xx (including rate limits)
- UPSTREAM_PROTOCOL_ERROR: the response had no usable text envelope

Status codes are authoritative when present; keyword matching on the
exception text is only used for exceptions that carry no status.
"""

from __future__ import annotations

import re
from typing import Any

from factlens_core.errors import PipelineError, PipelineErrorKind

# Keywords that indicate the request itself was refused
_REJECTED_KEYWORDS = (
    "invalid request",
    "bad request",
    "unauthorized",
    "authentication",
    "permission",
    "forbidden",
    "rate limit",
    "rate_limit",
    "quota",
)

_MAX_UPSTREAM_MESSAGE_CHARS = 300


def kind_for_status(status_code: int) -> PipelineErrorKind:
    if status_code >= 500:
        return PipelineErrorKind.UPSTREAM_UNAVAILABLE
    return PipelineErrorKind.UPSTREAM_REJECTED


def classify_upstream_failure(exc: Exception) -> PipelineErrorKind:
    """
    Classify an exception without an HTTP status into an upstream kind.

    Unrecognized failures count as unavailability: the call did not
    produce an answer and nothing suggests the request itself was wrong.
    """
    error_msg = str(exc).lower()
    exc_type = type(exc).__name__.lower()

    if "timeout" in exc_type or "connect" in exc_type or "network" in exc_type:
        return PipelineErrorKind.UPSTREAM_UNAVAILABLE
    if any(kw in error_msg for kw in _REJECTED_KEYWORDS):
        return PipelineErrorKind.UPSTREAM_REJECTED
    return PipelineErrorKind.UPSTREAM_UNAVAILABLE


def safe_upstream_message(message: Any) -> str | None:
    """
    Upstream error text suitable for end users, or None.

    Strips anything that looks like a credential and caps the length.
    """
    if not isinstance(message, str):
        return None
    s = " ".join(message.split())
    if not s:
        return None
    s = re.sub(r"\bsk-[A-Za-z0-9_-]{8,}", "***", s)
    s = re.sub(r"(Bearer\s+)[A-Za-z0-9._-]+", r"\1***", s)
    if len(s) > _MAX_UPSTREAM_MESSAGE_CHARS:
        s = s[:_MAX_UPSTREAM_MESSAGE_CHARS].rstrip() + "…"
    return s


def upstream_error(
    kind: PipelineErrorKind,
    *,
    upstream_message: Any = None,
    status_code: int | None = None,
    detail: str | None = None,
) -> PipelineError:
    """Build an upstream PipelineError, surfacing the upstream message only for rejections."""
    message = ""
    if kind == PipelineErrorKind.UPSTREAM_REJECTED:
        message = safe_upstream_message(upstream_message) or ""
    return PipelineError(kind, message, detail=detail, upstream_status=status_code)


def failure_to_trace_data(err: PipelineError, exc: Exception | None = None) -> dict[str, Any]:
    """
    Convert failure info to trace event data.
    """
    data: dict[str, Any] = {
        "failure_kind": err.kind.value,
        "upstream_status": err.upstream_status,
        "detail": (err.detail or "")[:200],
    }
    if exc is not None:
        data["error_type"] = type(exc).__name__
        data["error_message"] = str(exc)[:200]
    return data
