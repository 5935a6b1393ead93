"""
Adapter interfaces for metric storage backends.

Each adapter is responsible for a small, deterministic surface: one instant
query reduced to one value. Failures are reported through the
:mod:`~vm_storage_adapter.adapters.errors` hierarchy.
"""

from .api import VMStorageAdapter
from .base import AccountID, AdapterError, MetricStorageAdapter, VerificationResult
from .errors import (
    AmbiguousResultError,
    DecodeError,
    EmptyResultError,
    EmptyValueError,
    HTTPStatusError,
    InfiniteValueError,
    InsufficientValueError,
    QueryError,
    ReadError,
    TransportError,
    ValueParseError,
)

__all__ = [
    "AccountID",
    "AdapterError",
    "AmbiguousResultError",
    "DecodeError",
    "EmptyResultError",
    "EmptyValueError",
    "HTTPStatusError",
    "InfiniteValueError",
    "InsufficientValueError",
    "MetricStorageAdapter",
    "QueryError",
    "ReadError",
    "TransportError",
    "ValueParseError",
    "VerificationResult",
    "VMStorageAdapter",
]
