"""Configuration objects for the AppOptics metrics client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import FrozenSet, Optional

DEFAULT_API_ENDPOINT = "https://api.appoptics.com"
API_VERSION = "v1"
DEFAULT_RETRYABLE_STATUSES: FrozenSet[int] = frozenset({429, 502, 503, 504})


@dataclass(frozen=True)
class Credentials:
    api_key: str
    custom_user_agent: Optional[str] = None
    agent_identifier: Optional[str] = None

    @classmethod
    def from_env(cls) -> Optional["Credentials"]:
        api_key = os.environ.get("APPOPTICS_TOKEN")
        if not api_key:
            return None
        return cls(
            api_key=api_key,
            custom_user_agent=os.environ.get("APPOPTICS_USER_AGENT") or None,
            agent_identifier=os.environ.get("APPOPTICS_AGENT_IDENTIFIER") or None,
        )


@dataclass(frozen=True)
class EndpointConfig:
    base_url: str = DEFAULT_API_ENDPOINT
    open_timeout: float = 20.0
    total_timeout: float = 30.0
    proxy: Optional[str] = None
    max_attempts: int = 5
    backoff_base: float = 0.5
    backoff_cap: float = 10.0
    backoff_jitter: float = 0.1
    retryable_statuses: FrozenSet[int] = DEFAULT_RETRYABLE_STATUSES

    @classmethod
    def from_env(cls) -> "EndpointConfig":
        defaults = cls()
        return cls(
            base_url=os.environ.get("APPOPTICS_API_ENDPOINT") or defaults.base_url,
            open_timeout=float(os.environ.get("APPOPTICS_OPEN_TIMEOUT", defaults.open_timeout)),
            total_timeout=float(os.environ.get("APPOPTICS_TIMEOUT", defaults.total_timeout)),
            proxy=os.environ.get("APPOPTICS_PROXY") or None,
            max_attempts=int(os.environ.get("APPOPTICS_MAX_ATTEMPTS", defaults.max_attempts)),
            backoff_base=float(os.environ.get("APPOPTICS_BACKOFF_BASE", defaults.backoff_base)),
            backoff_cap=float(os.environ.get("APPOPTICS_BACKOFF_CAP", defaults.backoff_cap)),
            backoff_jitter=float(os.environ.get("APPOPTICS_BACKOFF_JITTER", defaults.backoff_jitter)),
            retryable_statuses=frozenset(
                int(status.strip())
                for status in os.environ.get("APPOPTICS_RETRYABLE_STATUSES", "").split(",")
                if status.strip()
            )
            or defaults.retryable_statuses,
        )

    def api_root(self) -> str:
        return f"{self.base_url.rstrip('/')}/{API_VERSION}/"


__all__ = ["API_VERSION", "Credentials", "DEFAULT_API_ENDPOINT", "DEFAULT_RETRYABLE_STATUSES", "EndpointConfig"]
