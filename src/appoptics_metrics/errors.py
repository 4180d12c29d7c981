"""Exception hierarchy raised by the request pipeline and persisters."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .http import Response


class MetricsError(Exception):
    """Base class for every error raised by this package."""


class MissingCredentials(MetricsError):
    def __init__(self, message: str = "No client credentials provided.") -> None:
        super().__init__(message)


class TransportError(MetricsError):
    """Connection, DNS, timeout or response decoding failure below the HTTP layer."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class StatusError(MetricsError):
    def __init__(self, response: "Response") -> None:
        self.response = response
        self.status_code = response.status_code
        self.body = response.text
        super().__init__(f"HTTP {self.status_code}: {self.body[:200]}")


class RetryableStatusError(StatusError):
    pass


class FatalStatusError(StatusError):
    pass


class PersistenceError(MetricsError):
    def __init__(self, message: str, cause: Optional[MetricsError] = None) -> None:
        super().__init__(message)
        self.cause = cause

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.cause, "status_code", None)


__all__ = [
    "FatalStatusError",
    "MetricsError",
    "MissingCredentials",
    "PersistenceError",
    "RetryableStatusError",
    "StatusError",
    "TransportError",
]
