# SPDX-License-Identifier: AGPL-3.0-or-later
# Copyright (c) 2024-2025 FactLens Contributors

import pytest

from factlens_core.errors import (
    GENERIC_PROCESSING_MESSAGE,
    ErrorClass,
    PipelineError,
    PipelineErrorKind,
)


@pytest.mark.parametrize(
    "kind,error_class,status",
    [
        (PipelineErrorKind.INVALID_INPUT, ErrorClass.CLIENT_INPUT, 400),
        (PipelineErrorKind.EMPTY_CONTENT, ErrorClass.CLIENT_INPUT, 422),
        (PipelineErrorKind.FETCH_FORBIDDEN, ErrorClass.CLIENT_INPUT, 403),
        (PipelineErrorKind.FETCH_NOT_FOUND, ErrorClass.CLIENT_INPUT, 404),
        (PipelineErrorKind.FETCH_RATE_LIMITED, ErrorClass.UPSTREAM, 429),
        (PipelineErrorKind.FETCH_TIMEOUT, ErrorClass.UPSTREAM, 504),
        (PipelineErrorKind.FETCH_FAILED, ErrorClass.UPSTREAM, 502),
        (PipelineErrorKind.UPSTREAM_UNAVAILABLE, ErrorClass.UPSTREAM, 503),
        (PipelineErrorKind.UPSTREAM_REJECTED, ErrorClass.UPSTREAM, 502),
        (PipelineErrorKind.UPSTREAM_PROTOCOL_ERROR, ErrorClass.UPSTREAM, 502),
        (PipelineErrorKind.NO_JSON_FOUND, ErrorClass.INTERNAL, 500),
        (PipelineErrorKind.MALFORMED_JSON, ErrorClass.INTERNAL, 500),
        (PipelineErrorKind.INCOMPLETE_VERDICT, ErrorClass.INTERNAL, 500),
        (PipelineErrorKind.INTERNAL_ERROR, ErrorClass.INTERNAL, 500),
    ],
)
def test_every_kind_has_a_status_class(kind, error_class, status):
    err = PipelineError(kind)
    assert err.error_class == error_class
    assert err.status_code == status
    assert err.message


def test_forbidden_fetch_tells_user_to_paste_text():
    status, body = PipelineError(PipelineErrorKind.FETCH_FORBIDDEN).to_response()
    assert status == 403
    assert "copy and paste" in body["error"]


def test_recovery_kinds_never_expose_custom_messages():
    err = PipelineError(
        PipelineErrorKind.MALFORMED_JSON,
        "Expecting ',' delimiter: line 1 column 40",
        raw_response='{"reliability_score": 5 "oops"}',
    )
    assert err.user_message == GENERIC_PROCESSING_MESSAGE
    assert err.to_response() == (500, {"error": GENERIC_PROCESSING_MESSAGE})


def test_detail_stays_out_of_the_response():
    err = PipelineError(PipelineErrorKind.FETCH_FAILED, detail="ConnectError: [Errno 111]")
    _, body = err.to_response()
    assert "Errno" not in body["error"]
    assert "Errno" in str(err)


def test_pipeline_error_is_an_exception():
    with pytest.raises(PipelineError) as exc_info:
        raise PipelineError(PipelineErrorKind.EMPTY_CONTENT, "Please provide some text to analyze.")
    assert exc_info.value.kind == PipelineErrorKind.EMPTY_CONTENT
    assert exc_info.value.to_response() == (422, {"error": "Please provide some text to analyze."})
