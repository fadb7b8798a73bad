# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

import io
import json
from unittest.mock import AsyncMock

import pytest

from factlens_cli import check_cmd, main


def _run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def test_check_prints_response_and_exits_zero(monkeypatch, capsys):
    body = {"reliability_score": 8, "is_factual": True, "sources": []}
    run_check = AsyncMock(return_value=(200, body))
    monkeypatch.setattr(check_cmd, "_run_check", run_check)

    code = _run(["check", "--type", "text", "--content", "Water boils at 100C at sea level."])

    assert code == 0
    assert json.loads(capsys.readouterr().out) == body
    payload = run_check.call_args.args[1]
    assert payload == {"type": "text", "content": "Water boils at 100C at sea level."}


def test_failed_check_exits_one(monkeypatch, capsys):
    monkeypatch.setattr(check_cmd, "_run_check", AsyncMock(return_value=(403, {"error": "protected"})))

    code = _run(["check", "--type", "url", "--content", "https://example.com/"])

    captured = capsys.readouterr()
    assert code == 1
    assert json.loads(captured.out) == {"error": "protected"}
    assert "403" in captured.err


def test_content_is_read_from_stdin(monkeypatch, capsys):
    run_check = AsyncMock(return_value=(200, {}))
    monkeypatch.setattr(check_cmd, "_run_check", run_check)
    monkeypatch.setattr("sys.stdin", io.StringIO("piped text\n"))

    assert _run(["check"]) == 0
    assert run_check.call_args.args[1] == {"type": "text", "content": "piped text\n"}


def test_provider_override(monkeypatch):
    run_check = AsyncMock(return_value=(200, {}))
    monkeypatch.setattr(check_cmd, "_run_check", run_check)

    _run(["check", "--provider", "openai", "--content", "x"])

    assert run_check.call_args.args[0].reasoning_provider == "openai"


def test_sources_lists_directory(monkeypatch, capsys):
    monkeypatch.delenv("FACTLENS_SOURCE_DIRECTORY", raising=False)
    assert _run(["sources"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith("factcheck.org")
    assert len(lines) >= 30


def test_missing_command_is_usage_error():
    assert _run([]) == 2
