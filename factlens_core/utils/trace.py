# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

"""
Per-check JSONL trace for local debugging.

Every event name is ``<stage>.<step>`` where the stage is one of the pipeline
stages in ``TRACE_STAGES``. A run is opened with ``Trace.start`` and written to
``data/trace/<trace_id>.jsonl``; string payloads are redacted and capped at the
runtime's ``raw_log_max_chars`` so model output never lands in the file whole.
"""

from __future__ import annotations

import contextvars
import json
import logging
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from factlens_core.runtime_config import EngineRuntimeConfig
from factlens_core.utils.runtime import is_local_run

logger = logging.getLogger(__name__)

TRACE_DIR = Path("data/trace")

TRACE_STAGES = frozenset({
    "trace",
    "engine",
    "normalize",
    "fetch",
    "reasoning",
    "recovery",
    "sources",
})

_SECRET_KEYS = frozenset({
    "authorization",
    "x-api-key",
    "api_key",
    "anthropic_api_key",
    "openai_api_key",
})

# Credentials that can show up inside upstream error bodies or prompts.
_REDACTIONS = (
    (re.compile(r"(Authorization:\s*Bearer\s+)\S+", re.IGNORECASE), r"\1***"),
    (re.compile(r"(x-api-key:\s*)\S+", re.IGNORECASE), r"\1***"),
    (re.compile(r"\bsk-[A-Za-z0-9_-]{8,}"), "sk-***"),
)

_MAX_ITEMS = 50


@dataclass(frozen=True)
class TraceRun:
    trace_id: str
    enabled: bool
    max_chars: int = 2000
    path: Path | None = None
    started: float = 0.0


_DISABLED = TraceRun(trace_id="", enabled=False)
_run_var: contextvars.ContextVar[TraceRun] = contextvars.ContextVar("factlens_trace_run", default=_DISABLED)


def stage_of(name: str) -> str:
    """Return the pipeline stage of an event name, raising on unknown stages."""
    stage, sep, step = name.partition(".")
    if not sep or not step or stage not in TRACE_STAGES:
        raise ValueError(f"Unknown trace event {name!r}; expected <stage>.<step> with stage in {sorted(TRACE_STAGES)}")
    return stage


def redact(text: str) -> str:
    for pattern, repl in _REDACTIONS:
        text = pattern.sub(repl, text)
    return text


def clip(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}...(+{len(text) - max_chars} chars)"


def scrub(obj: Any, *, max_chars: int) -> Any:
    """Make a payload JSON-safe: redact secrets, clip strings, bound collections."""
    if obj is None or isinstance(obj, (bool, int, float)):
        return obj
    if isinstance(obj, str):
        return clip(redact(obj), max_chars)
    if isinstance(obj, bytes):
        return f"<bytes:{len(obj)}>"
    if isinstance(obj, (list, tuple, set, frozenset)):
        items = list(obj)
        out = [scrub(x, max_chars=max_chars) for x in items[:_MAX_ITEMS]]
        if len(items) > _MAX_ITEMS:
            out.append(f"...(+{len(items) - _MAX_ITEMS} more)")
        return out
    if isinstance(obj, dict):
        return {
            str(k): "***" if str(k).lower() in _SECRET_KEYS else scrub(v, max_chars=max_chars)
            for k, v in obj.items()
        }
    return scrub(str(obj), max_chars=max_chars)


def _file_for(trace_id: str) -> Path | None:
    safe_tid = "".join(c if c.isalnum() or c in "._-" else "_" for c in trace_id)
    try:
        TRACE_DIR.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning("[Trace] Cannot create %s, tracing disabled: %s", TRACE_DIR, e)
        return None
    return TRACE_DIR / f"{safe_tid}.jsonl"


class Trace:
    """
    Local-only trace sink (JSONL) for debugging.
    Never enabled in production by default.
    """

    @staticmethod
    def start(trace_id: str, *, runtime: EngineRuntimeConfig | None = None) -> TraceRun:
        runtime = runtime or EngineRuntimeConfig.load_from_env()
        run = TraceRun(trace_id=trace_id, enabled=False)
        if is_local_run() and runtime.features.trace_enabled:
            path = _file_for(trace_id)
            if path is not None:
                run = TraceRun(
                    trace_id=trace_id,
                    enabled=True,
                    max_chars=runtime.debug.raw_log_max_chars,
                    path=path,
                    started=time.monotonic(),
                )
        _run_var.set(run)
        Trace.event("trace.start", {"started_at": time.strftime("%Y-%m-%d %H:%M:%S")})
        return run

    @staticmethod
    def stop() -> None:
        Trace.event("trace.stop")
        _run_var.set(_DISABLED)

    @staticmethod
    def enabled() -> bool:
        return _run_var.get().enabled

    @staticmethod
    def current_id() -> str | None:
        return _run_var.get().trace_id or None

    @staticmethod
    def event(name: str, data: Any | None = None) -> None:
        stage = stage_of(name)
        run = _run_var.get()
        if not run.enabled or run.path is None:
            return

        rec = {
            "ts_ms": int(time.time() * 1000),
            "elapsed_ms": int((time.monotonic() - run.started) * 1000),
            "trace_id": run.trace_id,
            "stage": stage,
            "event": name,
            "data": scrub(data, max_chars=run.max_chars),
        }
        try:
            with run.path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(rec, ensure_ascii=False) + "\n")
        except OSError as e:
            logger.debug("[Trace] Write failed for %s: %s", run.path, e)
