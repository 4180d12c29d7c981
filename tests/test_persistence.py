from __future__ import annotations

import json
from typing import List

import httpx
import pytest

from appoptics_metrics.config import Credentials, EndpointConfig
from appoptics_metrics.errors import (
    FatalStatusError,
    MissingCredentials,
    PersistenceError,
    RetryableStatusError,
    TransportError,
)
from appoptics_metrics.http import HttpxAdapter, MemoryAdapter
from appoptics_metrics.models import MetricsBatch
from appoptics_metrics.persistence import (
    NetworkPersister,
    PersistenceMode,
    TestPersister,
    build_persister,
    unordered_equal,
)
from appoptics_metrics.retry import Backoff, RetryPolicy
from appoptics_metrics.transport import Transport


def make_transport(handler, max_attempts: int = 2) -> Transport:
    config = EndpointConfig(base_url="https://api.example.com")
    return Transport(
        Credentials(api_key="key"),
        config,
        adapter=HttpxAdapter(config, transport=httpx.MockTransport(handler)),
        retry=RetryPolicy(max_attempts=max_attempts, backoff=Backoff(base=0), sleep=lambda _: None),
    )


def test_test_persister_accumulates_in_order() -> None:
    persister = TestPersister()
    assert persister.persist(MetricsBatch.from_mapping({"foo": 123})) is True
    assert persister.persist(MetricsBatch.from_mapping({"bar": 456})) is True

    expected = {"gauges": [{"name": "foo", "value": 123}, {"name": "bar", "value": 456}]}
    assert persister.persisted() == expected
    assert unordered_equal(persister.persisted(), expected)


def test_test_persister_reset() -> None:
    persister = TestPersister()
    persister.persist(MetricsBatch.from_mapping({"foo": 1}))
    persister.reset()
    assert persister.persisted() == {}


def test_persisted_returns_a_copy() -> None:
    persister = TestPersister()
    persister.persist(MetricsBatch.from_mapping({"foo": 1}))
    snapshot = persister.persisted()
    snapshot["gauges"].append({"name": "bar", "value": 2})
    assert persister.persisted() == {"gauges": [{"name": "foo", "value": 1}]}


def test_unordered_equal() -> None:
    actual = {"gauges": [{"name": "bar", "value": 456}, {"name": "foo", "value": 123}]}
    expected = {"gauges": [{"name": "foo", "value": 123}, {"name": "bar", "value": 456}]}
    assert unordered_equal(actual, expected)
    assert not unordered_equal(actual, {"gauges": [{"name": "foo", "value": 123}]})
    assert not unordered_equal(
        {"gauges": [{"name": "foo", "value": 1}, {"name": "foo", "value": 1}]},
        {"gauges": [{"name": "foo", "value": 1}]},
    )
    assert not unordered_equal(actual, {"counters": expected["gauges"]})


def test_network_persister_posts_batch() -> None:
    captured: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured.append(request)
        return httpx.Response(200)

    persister = NetworkPersister(make_transport(handler))
    assert persister.persist(MetricsBatch.from_mapping({"foo": 123, "bar": 456})) is True
    assert len(captured) == 1
    assert captured[0].url.path == "/v1/metrics"
    assert json.loads(captured[0].content) == {
        "gauges": [{"name": "foo", "value": 123}, {"name": "bar", "value": 456}]
    }
    assert persister.last_error is None


def test_network_persister_wraps_fatal_status() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="bad request")

    persister = NetworkPersister(make_transport(handler))
    with pytest.raises(PersistenceError) as excinfo:
        persister.persist(MetricsBatch.from_mapping({"foo": 1}))
    assert isinstance(excinfo.value.cause, FatalStatusError)
    assert excinfo.value.status_code == 400
    assert isinstance(excinfo.value.__cause__, FatalStatusError)


def test_network_persister_can_report_false() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503)

    persister = NetworkPersister(make_transport(handler), raise_errors=False)
    assert persister.persist(MetricsBatch.from_mapping({"foo": 1})) is False
    assert isinstance(persister.last_error, RetryableStatusError)


def test_network_persister_missing_credentials() -> None:
    persister = NetworkPersister(Transport(None, adapter=MemoryAdapter()))
    with pytest.raises(PersistenceError) as excinfo:
        persister.persist(MetricsBatch.from_mapping({"foo": 1}))
    assert isinstance(excinfo.value.cause, MissingCredentials)


def test_empty_batch_is_not_sent() -> None:
    adapter = MemoryAdapter()
    persister = NetworkPersister(Transport(Credentials(api_key="k"), adapter=adapter))
    assert persister.persist(MetricsBatch()) is True
    assert adapter.sent_requests == []


def test_build_persister() -> None:
    assert isinstance(build_persister(PersistenceMode.TEST), TestPersister)
    assert isinstance(build_persister("direct", Transport(None)), NetworkPersister)
    with pytest.raises(ValueError):
        build_persister(PersistenceMode.DIRECT)


def test_network_persister_wraps_undecodable_response() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"Content-Encoding": "gzip"}, content=b"not-gzip")

    persister = NetworkPersister(make_transport(handler))
    with pytest.raises(PersistenceError) as excinfo:
        persister.persist(MetricsBatch.from_mapping({"foo": 1}))
    assert isinstance(excinfo.value.cause, TransportError)
    assert isinstance(excinfo.value.cause.cause, httpx.DecodingError)
