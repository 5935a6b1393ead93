"""
HTTP clients for Prometheus-compatible query APIs.

* :class:`BaseAPIClient` wraps a shared ``httpx.Client`` and maps transport,
  read, status and decoding failures onto the adapter error hierarchy.
* :class:`VMStorageAdapter` builds instant-query URLs and extracts the scalar.
"""

from .base import BaseAPIClient
from .query_result import QueryResponse, QueryResultEntry, SampleKind, SampleValue, parse_query_response
from .victoria import VMStorageAdapter, format_rfc3339

__all__ = [
    "BaseAPIClient",
    "QueryResponse",
    "QueryResultEntry",
    "SampleKind",
    "SampleValue",
    "VMStorageAdapter",
    "format_rfc3339",
    "parse_query_response",
]
