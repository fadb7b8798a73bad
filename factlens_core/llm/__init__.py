# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""Reasoning service utilities package."""

from .failures import (
    classify_upstream_failure,
    failure_to_trace_data,
    kind_for_status,
    safe_upstream_message,
    upstream_error,
)
from .reasoning import ReasoningRequest, ReasoningService

__all__ = [
    "ReasoningRequest",
    "ReasoningService",
    "classify_upstream_failure",
    "failure_to_trace_data",
    "kind_for_status",
    "safe_upstream_message",
    "upstream_error",
]
