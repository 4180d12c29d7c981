"""Request counting middleware."""

from __future__ import annotations

import threading
from typing import Callable

from prometheus_client import Counter

from .http import Request, Response

REQUESTS_TOTAL = Counter(
    "appoptics_metrics_requests_total",
    "Physical HTTP attempts issued by the metrics client",
    ["method"],
)


class RequestCounter:
    """Counts every physical attempt, including retried and failed ones."""

    def __init__(self) -> None:
        self._count = 0
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        return self._count

    def on_attempt(self, request: Request) -> None:
        with self._lock:
            self._count += 1
        REQUESTS_TOTAL.labels(method=request.method).inc()

    def __call__(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        # counted before sending so failures are included
        self.on_attempt(request)
        return call_next(request)


__all__ = ["REQUESTS_TOTAL", "RequestCounter"]
