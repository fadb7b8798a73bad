# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

import json

import pytest

from factlens_core.errors import GENERIC_PROCESSING_MESSAGE, PipelineError, PipelineErrorKind
from factlens_core.schema.verdict import ReliabilityColor
from factlens_core.verification.recovery import (
    ResponseRecovery,
    balanced_json_candidate,
    extract_json_candidate,
    repair_json_text,
)

from conftest import verdict_json, verdict_payload


@pytest.fixture
def recovery():
    return ResponseRecovery()


def _kind_of(recovery, raw):
    with pytest.raises(PipelineError) as exc_info:
        recovery.recover(raw)
    return exc_info.value


def test_surrounding_prose_is_ignored(recovery):
    raw = "Sure! Here is my assessment:\n" + verdict_json() + "\nLet me know if you need more."
    verdict = recovery.recover(raw)
    assert verdict.reliability_score == 2
    assert verdict.is_factual is False
    assert verdict.key_claims == ["The 1969 moon landing was staged"]


def test_recovery_is_idempotent(recovery):
    raw = "prefix " + verdict_json(reliability_score=7, is_factual=True) + " suffix"
    first = recovery.recover(raw)
    second = recovery.recover(json.dumps(first.to_dict()))
    assert first == second


def test_no_braces_is_no_json_found(recovery):
    err = _kind_of(recovery, "I cannot help with that.")
    assert err.kind == PipelineErrorKind.NO_JSON_FOUND
    assert err.raw_response == "I cannot help with that."
    assert err.to_response() == (500, {"error": GENERIC_PROCESSING_MESSAGE})


def test_reversed_braces_is_no_json_found():
    with pytest.raises(PipelineError) as exc_info:
        extract_json_candidate("} nothing here {")
    assert exc_info.value.kind == PipelineErrorKind.NO_JSON_FOUND


def test_unparseable_object_is_malformed(recovery):
    err = _kind_of(recovery, '{"reliability_score": 5, "is_factual": tru}')
    assert err.kind == PipelineErrorKind.MALFORMED_JSON
    assert err.detail.startswith("Failed to parse JSON")


def test_raw_control_characters_are_repaired(recovery):
    raw = verdict_json(analysis="PLACEHOLDER").replace("PLACEHOLDER", "Line one\nLine two\x07 done")
    verdict = recovery.recover(raw)
    assert verdict.analysis == "Line one Line two done"


def test_repair_order():
    assert repair_json_text('{"a":\t"x\r\n\n  y\x00"}  ') == '{"a": "x y"}'


def test_trailing_object_falls_back_to_balanced_candidate(recovery):
    raw = verdict_json() + ' Note: {"aside" is not json}'
    verdict = recovery.recover(raw)
    assert verdict.reliability_score == 2


def test_balanced_candidate_skips_braces_in_strings():
    text = '{"a": "}{", "b": {"c": 1}} trailing }'
    assert balanced_json_candidate(text) == '{"a": "}{", "b": {"c": 1}}'
    assert balanced_json_candidate('{"a": 1') is None


@pytest.mark.parametrize(
    "overrides,field",
    [
        ({"reliability_score": None}, "reliability_score"),
        ({"reliability_score": "high"}, "reliability_score"),
        ({"reliability_score": True}, "reliability_score"),
        ({"reliability_score": 11}, "reliability_score"),
        ({"reliability_score": 0}, "reliability_score"),
        ({"reliability_score": 6.5}, "reliability_score"),
        ({"is_factual": "yes"}, "is_factual"),
        ({"analysis": "   "}, "analysis"),
        ({"sources": "none"}, "sources"),
        ({"false_claims": ["just a string"]}, "false_claims"),
    ],
)
def test_invalid_fields_are_incomplete_verdict(recovery, overrides, field):
    err = _kind_of(recovery, verdict_json(**overrides))
    assert err.kind == PipelineErrorKind.INCOMPLETE_VERDICT
    assert err.detail.startswith(field)


def test_missing_is_factual_is_incomplete(recovery):
    data = verdict_payload()
    del data["is_factual"]
    err = _kind_of(recovery, json.dumps(data))
    assert err.kind == PipelineErrorKind.INCOMPLETE_VERDICT
    assert err.detail == "is_factual: missing"


def test_score_is_checked_before_is_factual(recovery):
    data = verdict_payload(reliability_score=42)
    del data["is_factual"]
    err = _kind_of(recovery, json.dumps(data))
    assert err.detail.startswith("reliability_score")


def test_integral_float_score_is_accepted(recovery):
    assert recovery.recover(verdict_json(reliability_score=8.0)).reliability_score == 8


def test_indicator_is_derived_not_trusted(recovery):
    raw = verdict_json(reliability_score=9, reliability_indicator={"score": 1, "color": "low"})
    verdict = recovery.recover(raw)
    assert verdict.reliability_indicator.score == 9
    assert verdict.reliability_indicator.color == ReliabilityColor.HIGH


def test_optional_fields_default(recovery):
    raw = json.dumps({"reliability_score": 5, "is_factual": True})
    verdict = recovery.recover(raw)
    assert verdict.sources == []
    assert verdict.false_claims == []
    assert verdict.key_claims == []
    assert verdict.analysis == ""


def test_null_citation_fields_become_empty_strings(recovery):
    raw = verdict_json(sources=[{"title": "AP", "url": None, "relevance": "Wire report"}], key_claims=[" a ", "", 3])
    verdict = recovery.recover(raw)
    assert verdict.sources[0].url == ""
    assert verdict.key_claims == ["a"]


def test_empty_object_is_incomplete(recovery):
    err = _kind_of(recovery, "result: {} and [1, 2]")
    assert err.kind == PipelineErrorKind.INCOMPLETE_VERDICT
    assert err.detail == "reliability_score: missing"
