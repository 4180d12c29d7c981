"""Bounded retry with capped exponential backoff.

Each retried attempt is issued with a freshly copied ``Request``. Bodies are
held as bytes and re-sliced per attempt because a consumed stream cannot be
replayed; the encoder drains streams into bytes before this stage runs.

Retries are not idempotency-aware. A POST that times out after the server
received it will be sent again, so a batch can be recorded twice. Callers that
cannot tolerate duplicate submission should set ``max_attempts=1``.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, Optional, Union

from .config import DEFAULT_RETRYABLE_STATUSES, EndpointConfig
from .errors import RetryableStatusError, StatusError, TransportError
from .http import Request, Response
from .status import Outcome, classify_status, error_for

logger = logging.getLogger(__name__)

AttemptResult = Union[Response, Exception]


@dataclass(frozen=True)
class Backoff:
    base: float = 0.5
    cap: float = 10.0
    jitter: float = 0.1

    def delays(self, rng: Callable[[], float] = random.random) -> Iterator[float]:
        """Yield a non-decreasing sequence of delays, never above ``cap``."""
        previous = 0.0
        attempt = 0
        while True:
            raw = self.base * (2 ** min(attempt, 32)) * (1 + self.jitter * rng())
            previous = min(self.cap, max(previous, raw))
            yield previous
            attempt += 1


def default_classifier(retryable_statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUSES) -> Callable[[AttemptResult], Outcome]:
    statuses = frozenset(retryable_statuses)

    def classify(result: AttemptResult) -> Outcome:
        if isinstance(result, (TransportError, RetryableStatusError)):
            return Outcome.RETRYABLE
        if isinstance(result, Exception):
            return Outcome.FATAL
        return classify_status(result.status_code, statuses)

    return classify


class RetryPolicy:
    def __init__(
        self,
        max_attempts: int = 5,
        backoff: Optional[Backoff] = None,
        classify: Optional[Callable[[AttemptResult], Outcome]] = None,
        *,
        retryable_statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUSES,
        sleep: Callable[[float], Any] = time.sleep,
    ) -> None:
        self.max_attempts = max_attempts
        self.backoff = backoff or Backoff()
        self._retryable = frozenset(retryable_statuses)
        self._classify = classify or default_classifier(self._retryable)
        self._sleep = sleep

    @classmethod
    def from_config(cls, config: EndpointConfig, **kwargs: Any) -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            backoff=Backoff(base=config.backoff_base, cap=config.backoff_cap, jitter=config.backoff_jitter),
            retryable_statuses=config.retryable_statuses,
            **kwargs,
        )

    def execute(
        self,
        attempt_fn: Callable[[], Response],
        max_attempts: Optional[int] = None,
        classify_fn: Optional[Callable[[AttemptResult], Outcome]] = None,
    ) -> Response:
        """Run ``attempt_fn`` until it succeeds, fails fatally, or the budget runs out.

        ``max_attempts`` of 0 or 1 means a single attempt. The last failure is
        raised once the budget is exhausted; a failing response is raised as
        the matching ``StatusError``.
        """
        limit = max(1, self.max_attempts if max_attempts is None else max_attempts)
        classify = classify_fn or self._classify
        delays = self.backoff.delays()
        attempts = 0
        while True:
            try:
                result: AttemptResult = attempt_fn()
            except Exception as exc:
                result = exc
            attempts += 1
            outcome = classify(result)

            if outcome is Outcome.SUCCESS and isinstance(result, Response):
                return result
            if outcome is not Outcome.RETRYABLE or attempts >= limit:
                if outcome is Outcome.RETRYABLE:
                    logger.warning("giving up after %d attempts: %s", attempts, self._describe(result))
                raise self._terminal(result)

            delay = next(delays)
            logger.warning(
                "attempt %d/%d failed (%s); retrying in %.2fs",
                attempts,
                limit,
                self._describe(result),
                delay,
            )
            self._sleep(delay)

    def __call__(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        return self.execute(lambda: call_next(request.copy()))

    def _terminal(self, result: AttemptResult) -> Exception:
        if isinstance(result, Exception):
            return result
        error = error_for(result, self._retryable)
        # a 2xx classified as a failure by a custom classifier
        return error if error is not None else StatusError(result)

    @staticmethod
    def _describe(result: AttemptResult) -> str:
        if isinstance(result, Exception):
            return f"{type(result).__name__}: {result}"
        return f"HTTP {result.status_code}"


__all__ = ["AttemptResult", "Backoff", "RetryPolicy", "default_classifier"]
