# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Response recovery: from free-form reasoning output to a validated Verdict.

The reasoning service is told to answer with a single JSON object but may add
commentary around it, emit raw control characters inside strings, or drop
fields. Recovery is deliberately conservative: it cuts out the object, strips
characters known to break parsing, and never rebalances braces or rewrites
quoting.

Steps:
1. Candidate = first "{" .. last "}" (greedy, inclusive)
2. Repair: \n \r \t runs -> space, other C0/C1 controls removed, spaces collapsed
3. Parse (a balanced-brace candidate is tried when the greedy one fails)
4. Validate required fields in a fixed order
5. Derive reliability_indicator from the score
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from factlens_core.errors import PipelineError, PipelineErrorKind
from factlens_core.schema.verdict import Verdict
from factlens_core.utils.trace import Trace

logger = logging.getLogger(__name__)

_LINE_BREAKS_RE = re.compile(r"[\n\r\t]+")
_CONTROL_CHARS_RE = re.compile(r"[\u0000-\u001F\u007F-\u009F]")
_SPACES_RE = re.compile(r" {2,}")

REQUIRED_STRING_FIELDS = ("analysis", "transcription", "reliability_explanation")
OBJECT_LIST_FIELDS = ("false_claims", "sources")


def extract_json_candidate(raw_text: str) -> str:
    """Substring from the first "{" to the last "}" inclusive."""
    text = raw_text or ""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise PipelineError(
            PipelineErrorKind.NO_JSON_FOUND,
            detail="no JSON object found in response",
            raw_response=raw_text,
        )
    return text[start:end + 1]


def balanced_json_candidate(text: str) -> str | None:
    """
    First brace-balanced object starting at the first "{".

    Braces inside JSON strings are skipped. Returns None when the braces
    never balance.
    """
    start = text.find("{")
    if start == -1:
        return None
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def repair_json_text(candidate: str) -> str:
    text = _LINE_BREAKS_RE.sub(" ", candidate)
    text = _CONTROL_CHARS_RE.sub("", text)
    text = _SPACES_RE.sub(" ", text)
    return text.strip()


def _parse(candidate: str) -> Any:
    return json.loads(repair_json_text(candidate))


def _invalid(field: str, reason: str, raw_text: str) -> PipelineError:
    return PipelineError(
        PipelineErrorKind.INCOMPLETE_VERDICT,
        detail=f"{field}: {reason}",
        raw_response=raw_text,
    )


def _coerce_score(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def validate_verdict_data(data: dict[str, Any], raw_text: str = "") -> dict[str, Any]:
    """
    Check required fields and normalize optional ones.

    Raises IncompleteVerdict naming the first missing or invalid field.
    """
    out = dict(data)

    if "reliability_score" not in out:
        raise _invalid("reliability_score", "missing", raw_text)
    score = _coerce_score(out["reliability_score"])
    if score is None:
        raise _invalid("reliability_score", "must be an integer", raw_text)
    if not 1 <= score <= 10:
        raise _invalid("reliability_score", f"{score} is outside 1-10", raw_text)
    out["reliability_score"] = score

    if "is_factual" not in out:
        raise _invalid("is_factual", "missing", raw_text)
    if not isinstance(out["is_factual"], bool):
        raise _invalid("is_factual", "must be a boolean", raw_text)

    for field in REQUIRED_STRING_FIELDS:
        if field not in out or out[field] is None:
            out.pop(field, None)
            continue
        value = out[field]
        if not isinstance(value, str) or not value.strip():
            raise _invalid(field, "must be a non-empty string", raw_text)

    for field in OBJECT_LIST_FIELDS:
        value = out.get(field)
        if value is None:
            out[field] = []
            continue
        if not isinstance(value, list):
            raise _invalid(field, "must be a list", raw_text)
        if any(not isinstance(item, dict) for item in value):
            raise _invalid(field, "entries must be objects", raw_text)
        out[field] = [{k: ("" if v is None else v) for k, v in item.items()} for item in value]

    claims = out.get("key_claims")
    if claims is None:
        out["key_claims"] = []
    elif not isinstance(claims, list):
        raise _invalid("key_claims", "must be a list", raw_text)
    else:
        out["key_claims"] = [c.strip() for c in claims if isinstance(c, str) and c.strip()]

    # Derived field: never trusted from upstream.
    out.pop("reliability_indicator", None)
    return out


class ResponseRecovery:
    def __init__(self, *, raw_log_max_chars: int = 2000):
        self.raw_log_max_chars = int(raw_log_max_chars)

    def _log_failure(self, err: PipelineError, raw_text: str) -> None:
        raw = (raw_text or "")[: self.raw_log_max_chars]
        logger.warning("[Recovery] %s: %s | raw response: %s", err.kind.value, err.detail, raw)
        Trace.event("recovery.error", {
            "kind": err.kind.value,
            "detail": err.detail,
            "raw": raw,
            "raw_len": len(raw_text or ""),
        })

    def recover(self, raw_text: str) -> Verdict:
        try:
            verdict = self._recover(raw_text)
        except PipelineError as err:
            self._log_failure(err, raw_text)
            raise
        Trace.event("recovery.done", {
            "reliability_score": verdict.reliability_score,
            "key_claims": len(verdict.key_claims),
            "sources": len(verdict.sources),
        })
        return verdict

    def _recover(self, raw_text: str) -> Verdict:
        candidate = extract_json_candidate(raw_text)

        try:
            data = _parse(candidate)
        except json.JSONDecodeError as e:
            balanced = balanced_json_candidate(candidate)
            data = None
            if balanced is not None and balanced != candidate:
                try:
                    data = _parse(balanced)
                    logger.debug("[Recovery] Greedy candidate failed, balanced candidate parsed")
                except json.JSONDecodeError:
                    data = None
            if data is None:
                raise PipelineError(
                    PipelineErrorKind.MALFORMED_JSON,
                    detail=f"Failed to parse JSON: {e}",
                    raw_response=raw_text,
                ) from e

        if not isinstance(data, dict):
            raise PipelineError(
                PipelineErrorKind.MALFORMED_JSON,
                detail=f"expected a JSON object, got {type(data).__name__}",
                raw_response=raw_text,
            )

        cleaned = validate_verdict_data(data, raw_text)
        try:
            verdict = Verdict.from_dict(cleaned)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            field = ".".join(str(p) for p in first.get("loc", ())) or "verdict"
            raise _invalid(field, first.get("msg", "invalid"), raw_text) from e

        return verdict.with_indicator()
