"""HTTP status classification.

Status table, consulted by both the validator and the retry policy:

=====================  ===========
status                 outcome
=====================  ===========
2xx                    success
429, 502, 503, 504     retryable
any other              fatal
=====================  ===========

The retryable set can be overridden through ``EndpointConfig.retryable_statuses``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Iterable, Optional

from .config import DEFAULT_RETRYABLE_STATUSES
from .errors import FatalStatusError, RetryableStatusError, StatusError
from .http import Request, Response

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


def classify_status(status_code: int, retryable_statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUSES) -> Outcome:
    if 200 <= status_code < 300:
        return Outcome.SUCCESS
    if status_code in retryable_statuses:
        return Outcome.RETRYABLE
    return Outcome.FATAL


def error_for(response: Response, retryable_statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUSES) -> Optional[StatusError]:
    outcome = classify_status(response.status_code, retryable_statuses)
    if outcome is Outcome.RETRYABLE:
        return RetryableStatusError(response)
    if outcome is Outcome.FATAL:
        return FatalStatusError(response)
    return None


class StatusValidator:
    """Pipeline stage turning non-2xx responses into status errors."""

    def __init__(self, retryable_statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUSES) -> None:
        self._retryable = frozenset(retryable_statuses)

    @property
    def retryable_statuses(self) -> frozenset:
        return self._retryable

    def validate(self, response: Response) -> Response:
        error = error_for(response, self._retryable)
        if error is not None:
            logger.debug("status %s rejected body=%s", response.status_code, response.text[:200])
            raise error
        return response

    def __call__(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        return self.validate(call_next(request))


__all__ = ["Outcome", "StatusValidator", "classify_status", "error_for"]
