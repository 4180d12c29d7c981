"""Request/response types and the adapters that physically send them."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, List, Optional

import httpx

from .config import EndpointConfig
from .errors import TransportError

logger = logging.getLogger(__name__)


class Backend(str, Enum):
    HTTPX = "httpx"
    MEMORY = "memory"


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Any = None

    def copy(self) -> "Request":
        """Return a fresh request with its own headers and an unconsumed body.

        Byte bodies are re-sliced so that every attempt reads from offset 0.
        """
        body = self.body
        if isinstance(body, (bytes, bytearray, memoryview)):
            body = bytes(body[:])
        return replace(self, headers=httpx.Headers(self.headers), body=body)


@dataclass(frozen=True)
class Response:
    status_code: int
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    content: bytes = b""

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return json.loads(self.content) if self.content else None


class Adapter:
    backend: Backend

    def send(self, request: Request) -> Response:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - optional override
        return None


class HttpxAdapter(Adapter):
    """Sends requests through a single, lazily created ``httpx.Client``.

    ``httpx.Client`` is safe to share between threads, so one adapter may
    serve concurrent callers.
    """

    backend = Backend.HTTPX

    def __init__(self, config: EndpointConfig, *, transport: Optional[httpx.BaseTransport] = None) -> None:
        self._config = config
        self._transport = transport
        self._client: Optional[httpx.Client] = None
        self._lock = threading.Lock()

    @property
    def client(self) -> httpx.Client:
        if self._client is None:
            with self._lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=httpx.Timeout(self._config.total_timeout, connect=self._config.open_timeout),
                        proxy=self._config.proxy,
                        transport=self._transport,
                    )
        return self._client

    def send(self, request: Request) -> Response:
        try:
            resp = self.client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.body,
            )
        except httpx.RequestError as exc:
            raise TransportError(f"{request.method} {request.url} failed: {exc}", cause=exc) from exc
        return Response(status_code=resp.status_code, headers=resp.headers, content=resp.content)

    def close(self) -> None:
        with self._lock:
            if self._client is not None:
                self._client.close()
                self._client = None


class MemoryAdapter(Adapter):
    """In-memory adapter for tests; records every request it receives."""

    backend = Backend.MEMORY

    def __init__(self, handler: Optional[Callable[[Request], Response]] = None) -> None:
        self._handler = handler or (lambda request: Response(status_code=200))
        self._sent: List[Request] = []
        self._lock = threading.Lock()

    def send(self, request: Request) -> Response:
        with self._lock:
            self._sent.append(request)
        logger.debug("memory adapter received %s %s", request.method, request.url)
        return self._handler(request)

    @property
    def sent_requests(self) -> List[Request]:
        with self._lock:
            return list(self._sent)


__all__ = ["Adapter", "Backend", "HttpxAdapter", "MemoryAdapter", "Request", "Response"]
