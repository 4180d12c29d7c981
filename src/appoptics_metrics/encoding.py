"""Payload encoding for outgoing requests."""

from __future__ import annotations

import json
from dataclasses import replace
from typing import Any, Callable, Optional, Tuple

import httpx
from pydantic import BaseModel

from .http import Request, Response

JSON_CONTENT_TYPE = "application/json"


def encode(body: Any) -> Tuple[Optional[bytes], Optional[str]]:
    """Serialize ``body`` into wire bytes and the content type it implies.

    Raw bytes pass through untouched and imply no content type. Readable
    streams are drained once into bytes so that retries can resend them.
    Structured bodies (pydantic models, dicts, lists) become compact JSON with
    sorted keys and list order kept, so equal inputs yield identical bytes.
    NaN and infinities are rejected with ``ValueError``.
    """
    if body is None:
        return None, None
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body), None
    if isinstance(body, str):
        return body.encode("utf-8"), None
    if hasattr(body, "read"):
        data = body.read()
        return (data.encode("utf-8") if isinstance(data, str) else bytes(data)), None
    if isinstance(body, BaseModel):
        body = body.model_dump(mode="json")
    return json.dumps(body, separators=(",", ":"), sort_keys=True, allow_nan=False).encode("utf-8"), JSON_CONTENT_TYPE


class PayloadEncoder:
    """Pipeline stage that encodes the body once per logical request."""

    def __call__(self, request: Request, call_next: Callable[[Request], Response]) -> Response:
        content, content_type = encode(request.body)
        headers = httpx.Headers(request.headers)
        if content_type:
            headers["Content-Type"] = content_type
        return call_next(replace(request, headers=headers, body=content))


__all__ = ["JSON_CONTENT_TYPE", "PayloadEncoder", "encode"]
