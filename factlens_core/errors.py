# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Pipeline error taxonomy.

Every failure the pipeline can report is a `PipelineError` carrying a
`PipelineErrorKind`. Kinds are assigned where the failure is detected and
travel upward unchanged; the engine only formats them for the boundary.

Status classes:
- client_input: the caller can fix the request (bad fields, blocked page, ...)
- upstream: a remote dependency failed (page host, reasoning service)
- internal: the reasoning output could not be turned into a verdict
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class PipelineErrorKind(str, Enum):
    INVALID_INPUT = "InvalidInput"
    EMPTY_CONTENT = "EmptyContent"
    FETCH_FORBIDDEN = "FetchForbidden"
    FETCH_NOT_FOUND = "FetchNotFound"
    FETCH_RATE_LIMITED = "FetchRateLimited"
    FETCH_TIMEOUT = "FetchTimeout"
    FETCH_FAILED = "FetchFailed"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    UPSTREAM_REJECTED = "UpstreamRejected"
    UPSTREAM_PROTOCOL_ERROR = "UpstreamProtocolError"
    NO_JSON_FOUND = "NoJsonFound"
    MALFORMED_JSON = "MalformedJson"
    INCOMPLETE_VERDICT = "IncompleteVerdict"
    INTERNAL_ERROR = "InternalError"


class ErrorClass(str, Enum):
    CLIENT_INPUT = "client_input"
    UPSTREAM = "upstream"
    INTERNAL = "internal"


GENERIC_PROCESSING_MESSAGE = "Failed to process response. Please try again."

_KIND_STATUS: dict[PipelineErrorKind, tuple[ErrorClass, int]] = {
    PipelineErrorKind.INVALID_INPUT: (ErrorClass.CLIENT_INPUT, 400),
    PipelineErrorKind.EMPTY_CONTENT: (ErrorClass.CLIENT_INPUT, 422),
    PipelineErrorKind.FETCH_FORBIDDEN: (ErrorClass.CLIENT_INPUT, 403),
    PipelineErrorKind.FETCH_NOT_FOUND: (ErrorClass.CLIENT_INPUT, 404),
    PipelineErrorKind.FETCH_RATE_LIMITED: (ErrorClass.UPSTREAM, 429),
    PipelineErrorKind.FETCH_TIMEOUT: (ErrorClass.UPSTREAM, 504),
    PipelineErrorKind.FETCH_FAILED: (ErrorClass.UPSTREAM, 502),
    PipelineErrorKind.UPSTREAM_UNAVAILABLE: (ErrorClass.UPSTREAM, 503),
    PipelineErrorKind.UPSTREAM_REJECTED: (ErrorClass.UPSTREAM, 502),
    PipelineErrorKind.UPSTREAM_PROTOCOL_ERROR: (ErrorClass.UPSTREAM, 502),
    PipelineErrorKind.NO_JSON_FOUND: (ErrorClass.INTERNAL, 500),
    PipelineErrorKind.MALFORMED_JSON: (ErrorClass.INTERNAL, 500),
    PipelineErrorKind.INCOMPLETE_VERDICT: (ErrorClass.INTERNAL, 500),
    PipelineErrorKind.INTERNAL_ERROR: (ErrorClass.INTERNAL, 500),
}

DEFAULT_MESSAGES: dict[PipelineErrorKind, str] = {
    PipelineErrorKind.INVALID_INPUT: "Missing required fields: type and content",
    PipelineErrorKind.EMPTY_CONTENT: (
        "No content could be extracted for analysis. "
        "Please copy and paste the text directly."
    ),
    PipelineErrorKind.FETCH_FORBIDDEN: (
        "This website is protected against scraping. "
        "Please copy and paste the article text directly."
    ),
    PipelineErrorKind.FETCH_NOT_FOUND: "The webpage could not be found. Please check the URL and try again.",
    PipelineErrorKind.FETCH_RATE_LIMITED: "Too many requests. Please try again later.",
    PipelineErrorKind.FETCH_TIMEOUT: "The request timed out. Please try again or use a different URL.",
    PipelineErrorKind.FETCH_FAILED: (
        "Failed to fetch webpage content. "
        "For paywalled articles, please copy and paste the text directly."
    ),
    PipelineErrorKind.UPSTREAM_UNAVAILABLE: "The analysis service is temporarily unavailable. Please try again later.",
    PipelineErrorKind.UPSTREAM_REJECTED: "The analysis service rejected the request.",
    PipelineErrorKind.UPSTREAM_PROTOCOL_ERROR: "Invalid response from the analysis service.",
    PipelineErrorKind.NO_JSON_FOUND: GENERIC_PROCESSING_MESSAGE,
    PipelineErrorKind.MALFORMED_JSON: GENERIC_PROCESSING_MESSAGE,
    PipelineErrorKind.INCOMPLETE_VERDICT: GENERIC_PROCESSING_MESSAGE,
    PipelineErrorKind.INTERNAL_ERROR: "An unexpected error occurred. Please try again.",
}

# Raw reasoning output never reaches end users for these kinds.
RECOVERY_KINDS = frozenset({
    PipelineErrorKind.NO_JSON_FOUND,
    PipelineErrorKind.MALFORMED_JSON,
    PipelineErrorKind.INCOMPLETE_VERDICT,
})


@dataclass(eq=False)
class PipelineError(Exception):
    """
    Typed pipeline failure.

    `message` is safe to show to users, `detail` and `raw_response` are for logs only.
    """

    kind: PipelineErrorKind
    message: str = ""
    detail: str | None = None
    raw_response: str | None = None
    upstream_status: int | None = None

    def __post_init__(self) -> None:
        if not self.message:
            self.message = DEFAULT_MESSAGES[self.kind]

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message} (kind={self.kind.value}, detail={self.detail})"
        return f"{self.message} (kind={self.kind.value})"

    @property
    def error_class(self) -> ErrorClass:
        return _KIND_STATUS[self.kind][0]

    @property
    def status_code(self) -> int:
        return _KIND_STATUS[self.kind][1]

    @property
    def user_message(self) -> str:
        if self.kind in RECOVERY_KINDS:
            return GENERIC_PROCESSING_MESSAGE
        return self.message or DEFAULT_MESSAGES[self.kind]

    def to_response(self) -> tuple[int, dict[str, str]]:
        return self.status_code, {"error": self.user_message}
