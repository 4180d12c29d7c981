"""High level client for submitting gauges."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Union

from .config import Credentials, EndpointConfig
from .http import Adapter
from .models import MetricsBatch
from .persistence import NetworkPersister, PersistenceMode, Persister, build_persister
from .retry import RetryPolicy
from .transport import Transport

logger = logging.getLogger(__name__)


class MetricsClient:
    def __init__(
        self,
        credentials: Optional[Credentials] = None,
        endpoint: Optional[EndpointConfig] = None,
        *,
        persistence: Union[PersistenceMode, str] = PersistenceMode.DIRECT,
        adapter: Optional[Adapter] = None,
        retry: Optional[RetryPolicy] = None,
    ) -> None:
        self._credentials = credentials
        self._endpoint = endpoint or EndpointConfig()
        self._persistence = PersistenceMode(persistence)
        self._adapter = adapter
        self._retry = retry
        self._transport: Optional[Transport] = None
        self._persister: Optional[Persister] = None

    @classmethod
    def from_env(cls, **kwargs: Any) -> "MetricsClient":
        return cls(Credentials.from_env(), EndpointConfig.from_env(), **kwargs)

    def __enter__(self) -> "MetricsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def credentials(self) -> Optional[Credentials]:
        return self._credentials

    def authenticate(
        self,
        api_key: str,
        *,
        custom_user_agent: Optional[str] = None,
        agent_identifier: Optional[str] = None,
    ) -> Credentials:
        self._credentials = Credentials(
            api_key=api_key,
            custom_user_agent=custom_user_agent,
            agent_identifier=agent_identifier,
        )
        self._reset_transport()
        return self._credentials

    def flush_authentication(self) -> None:
        self._credentials = None
        self._reset_transport()

    @property
    def transport(self) -> Transport:
        if self._transport is None:
            self._transport = Transport(
                self._credentials,
                self._endpoint,
                adapter=self._adapter,
                retry=self._retry,
            )
        return self._transport

    @property
    def persistence(self) -> PersistenceMode:
        return self._persistence

    @persistence.setter
    def persistence(self, mode: Union[PersistenceMode, str]) -> None:
        mode = PersistenceMode(mode)
        if mode is not self._persistence:
            self._persister = None
        self._persistence = mode

    @property
    def persister(self) -> Persister:
        if self._persister is None:
            self._persister = build_persister(self._persistence, self.transport)
        return self._persister

    def submit(self, metrics: Mapping[str, Any]) -> bool:
        """Submit ``{name: value}`` gauges as a single batch."""
        batch = MetricsBatch.from_mapping(metrics)
        return self.persister.persist(batch)

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()

    def _reset_transport(self) -> None:
        self.close()
        self._transport = None
        if isinstance(self._persister, NetworkPersister):
            self._persister = None


__all__ = ["MetricsClient"]
