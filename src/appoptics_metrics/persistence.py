"""Destinations for submitted metric batches."""

from __future__ import annotations

import copy
import json
import logging
import threading
from collections import Counter
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .errors import MetricsError, PersistenceError
from .models import MetricsBatch
from .transport import Transport

logger = logging.getLogger(__name__)

Persisted = Dict[str, List[Dict[str, Any]]]


class PersistenceMode(str, Enum):
    DIRECT = "direct"
    TEST = "test"


class Persister:
    last_error: Optional[MetricsError] = None

    def persist(self, batch: MetricsBatch) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


class NetworkPersister(Persister):
    """Submits each batch as one POST through the transport.

    With ``raise_errors`` (the default) failures surface as ``PersistenceError``
    chained to the underlying error; otherwise ``persist`` returns ``False``
    and the error is kept on ``last_error``.
    """

    def __init__(self, transport: Transport, *, path: str = "metrics", raise_errors: bool = True) -> None:
        self._transport = transport
        self._path = path
        self._raise_errors = raise_errors
        self.last_error = None

    def persist(self, batch: MetricsBatch) -> bool:
        if not batch.gauges:
            logger.debug("empty batch; nothing to submit")
            return True
        try:
            self._transport.post(self._path, batch)
        except MetricsError as exc:
            self.last_error = exc
            logger.error("Failed to persist %d gauges: %s", len(batch), exc)
            if self._raise_errors:
                raise PersistenceError(f"failed to persist metrics: {exc}", cause=exc) from exc
            return False
        self.last_error = None
        logger.debug("persisted %d gauges", len(batch))
        return True


class TestPersister(Persister):
    """Keeps submitted batches in memory instead of sending them."""

    __test__ = False

    def __init__(self) -> None:
        self._persisted: Persisted = {}
        self._lock = threading.Lock()

    def persist(self, batch: MetricsBatch) -> bool:
        with self._lock:
            for category, entries in batch.categories().items():
                if entries:
                    self._persisted.setdefault(category, []).extend(entries)
        return True

    def persisted(self) -> Persisted:
        with self._lock:
            return copy.deepcopy(self._persisted)

    def reset(self) -> None:
        with self._lock:
            self._persisted.clear()


def _entry_key(entry: Any) -> str:
    return json.dumps(entry, sort_keys=True)


def unordered_equal(actual: Mapping[str, Sequence[Any]], expected: Mapping[str, Sequence[Any]]) -> bool:
    """Compare two persisted mappings, ignoring entry order within a category."""
    if set(actual) != set(expected):
        return False
    return all(
        Counter(map(_entry_key, actual[key])) == Counter(map(_entry_key, expected[key]))
        for key in actual
    )


def build_persister(mode: PersistenceMode, transport: Optional[Transport] = None) -> Persister:
    mode = PersistenceMode(mode)
    if mode is PersistenceMode.TEST:
        return TestPersister()
    if transport is None:
        raise ValueError("a transport is required for direct persistence")
    return NetworkPersister(transport)


__all__ = [
    "NetworkPersister",
    "PersistenceMode",
    "Persister",
    "TestPersister",
    "build_persister",
    "unordered_equal",
]
