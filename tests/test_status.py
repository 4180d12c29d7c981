from __future__ import annotations

import pytest

from appoptics_metrics.errors import FatalStatusError, RetryableStatusError
from appoptics_metrics.http import Response
from appoptics_metrics.status import Outcome, StatusValidator, classify_status


@pytest.mark.parametrize(
    "status, outcome",
    [
        (200, Outcome.SUCCESS),
        (204, Outcome.SUCCESS),
        (429, Outcome.RETRYABLE),
        (502, Outcome.RETRYABLE),
        (503, Outcome.RETRYABLE),
        (504, Outcome.RETRYABLE),
        (400, Outcome.FATAL),
        (401, Outcome.FATAL),
        (404, Outcome.FATAL),
        (500, Outcome.FATAL),
    ],
)
def test_classification_table(status: int, outcome: Outcome) -> None:
    assert classify_status(status) is outcome


def test_validate_passes_success_through() -> None:
    response = Response(status_code=200, content=b"ok")
    assert StatusValidator().validate(response) is response


def test_validate_raises_retryable() -> None:
    with pytest.raises(RetryableStatusError) as excinfo:
        StatusValidator().validate(Response(status_code=503, content=b"busy"))
    assert excinfo.value.status_code == 503


def test_validate_raises_fatal_with_body() -> None:
    with pytest.raises(FatalStatusError) as excinfo:
        StatusValidator().validate(Response(status_code=400, content=b'{"errors":"bad"}'))
    assert excinfo.value.status_code == 400
    assert excinfo.value.body == '{"errors":"bad"}'


def test_custom_retryable_statuses() -> None:
    validator = StatusValidator(retryable_statuses={500})
    with pytest.raises(RetryableStatusError):
        validator.validate(Response(status_code=500))
    with pytest.raises(FatalStatusError):
        validator.validate(Response(status_code=503))
