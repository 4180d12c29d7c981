"""AppOptics metrics client."""

from .client import MetricsClient
from .config import Credentials, EndpointConfig
from .errors import (
    FatalStatusError,
    MetricsError,
    MissingCredentials,
    PersistenceError,
    RetryableStatusError,
    StatusError,
    TransportError,
)
from .http import Backend, HttpxAdapter, MemoryAdapter
from .models import Gauge, MetricsBatch
from .persistence import NetworkPersister, PersistenceMode, TestPersister, unordered_equal
from .retry import Backoff, RetryPolicy
from .transport import Transport
from .version import VERSION

__version__ = VERSION

__all__ = [
    "Backend",
    "Backoff",
    "Credentials",
    "EndpointConfig",
    "FatalStatusError",
    "Gauge",
    "HttpxAdapter",
    "MemoryAdapter",
    "MetricsBatch",
    "MetricsClient",
    "MetricsError",
    "MissingCredentials",
    "NetworkPersister",
    "PersistenceError",
    "PersistenceMode",
    "RetryPolicy",
    "RetryableStatusError",
    "StatusError",
    "TestPersister",
    "Transport",
    "TransportError",
    "unordered_equal",
]
