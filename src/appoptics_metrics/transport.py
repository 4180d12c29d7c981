"""HTTP transport: middleware composition and verb helpers."""

from __future__ import annotations

import base64
import logging
import platform
import threading
from functools import partial
from typing import Any, Callable, List, Mapping, Optional, Sequence

import httpx

from .config import Credentials, EndpointConfig
from .counter import RequestCounter
from .encoding import JSON_CONTENT_TYPE, PayloadEncoder
from .errors import MissingCredentials
from .http import Adapter, Backend, HttpxAdapter, Request, Response
from .retry import RetryPolicy
from .status import StatusValidator
from .version import VERSION

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Response]
Stage = Callable[[Request, Handler], Response]


def compose(stages: Sequence[Stage], endpoint: Handler) -> Handler:
    """Wrap ``endpoint`` so that ``stages[0]`` is the outermost stage."""
    handler = endpoint
    for stage in reversed(stages):
        handler = partial(stage, call_next=handler)
    return handler


def build_user_agent(credentials: Credentials, backend: Backend) -> str:
    if credentials.custom_user_agent:
        return credentials.custom_user_agent
    chunks: List[str] = []
    if credentials.agent_identifier:
        chunks.append(credentials.agent_identifier)
    chunks.append(f"appoptics-metrics-python/{VERSION}")
    chunks.append(
        f"({platform.python_implementation()}; {platform.python_version()}; {platform.system().lower()})"
    )
    chunks.append(f"httpx/{httpx.__version__}" if backend is Backend.HTTPX else backend.value)
    return " ".join(chunks)


def basic_auth_header(api_key: str) -> str:
    token = base64.b64encode(f"{api_key}:".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class Transport:
    """Issues requests through a fixed middleware chain.

    Stage order, outermost first: payload encoding, retry, request counting,
    status validation, then the adapter's physical send. Credentials are only
    checked when a request is issued, so a transport may be built before the
    caller has authenticated.
    """

    def __init__(
        self,
        credentials: Optional[Credentials],
        config: Optional[EndpointConfig] = None,
        *,
        adapter: Optional[Adapter] = None,
        retry: Optional[RetryPolicy] = None,
        counter: Optional[RequestCounter] = None,
    ) -> None:
        self._credentials = credentials
        self._config = config or EndpointConfig()
        self._adapter = adapter
        self._retry = retry or RetryPolicy.from_config(self._config)
        self.counter = counter or RequestCounter()
        self._pipeline: Optional[Handler] = None
        self._headers: Optional[httpx.Headers] = None
        self._lock = threading.Lock()

    @property
    def config(self) -> EndpointConfig:
        return self._config

    @property
    def api_endpoint(self) -> str:
        return self._config.base_url

    @property
    def adapter(self) -> Adapter:
        if self._adapter is None:
            with self._lock:
                if self._adapter is None:
                    self._adapter = HttpxAdapter(self._config)
        return self._adapter

    def stages(self) -> List[Stage]:
        return [
            PayloadEncoder(),
            self._retry,
            self.counter,
            StatusValidator(self._config.retryable_statuses),
        ]

    @property
    def pipeline(self) -> Handler:
        credentials = self._require_credentials()
        if self._pipeline is None:
            adapter = self.adapter
            with self._lock:
                if self._pipeline is None:
                    self._headers = httpx.Headers(
                        {
                            "User-Agent": build_user_agent(credentials, adapter.backend),
                            "Content-Type": JSON_CONTENT_TYPE,
                            "Authorization": basic_auth_header(credentials.api_key),
                        }
                    )
                    self._pipeline = compose(self.stages(), adapter.send)
        return self._pipeline

    @property
    def user_agent(self) -> str:
        return build_user_agent(self._require_credentials(), self.adapter.backend)

    def build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return self._config.api_root() + path.lstrip("/")

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Response:
        pipeline = self.pipeline
        merged = httpx.Headers(self._headers)
        if headers:
            merged.update(headers)
        request = Request(method=method.upper(), url=self.build_url(path), headers=merged, body=body)
        logger.debug("%s %s", request.method, request.url)
        return pipeline(request)

    def get(self, path: str, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.request("GET", path, headers=headers)

    def head(self, path: str, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.request("HEAD", path, headers=headers)

    def delete(self, path: str, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.request("DELETE", path, headers=headers)

    def post(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.request("POST", path, body=body, headers=headers)

    def put(self, path: str, body: Any = None, headers: Optional[Mapping[str, str]] = None) -> Response:
        return self.request("PUT", path, body=body, headers=headers)

    def close(self) -> None:
        if self._adapter is not None:
            self._adapter.close()

    def _require_credentials(self) -> Credentials:
        if self._credentials is None or not self._credentials.api_key:
            raise MissingCredentials()
        return self._credentials


__all__ = ["Handler", "Stage", "Transport", "basic_auth_header", "build_user_agent", "compose"]
