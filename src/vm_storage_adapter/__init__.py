"""
Instant-query adapter for Prometheus-compatible metric backends.

:class:`~vm_storage_adapter.adapters.api.victoria.VMStorageAdapter` reduces a
PromQL/MetricsQL instant query against Prometheus or a multi-tenant
VictoriaMetrics cluster to a single float. Use
:func:`~vm_storage_adapter.config.load_settings` and
:func:`~vm_storage_adapter.config.build_adapter` to construct one from a
configuration file.
"""

from .adapters import (
    AdapterError,
    MetricStorageAdapter,
    QueryError,
    VerificationResult,
    VMStorageAdapter,
)
from .config import AdapterSettings, build_adapter, load_settings

__all__ = [
    "AdapterError",
    "AdapterSettings",
    "MetricStorageAdapter",
    "QueryError",
    "VerificationResult",
    "VMStorageAdapter",
    "build_adapter",
    "load_settings",
]
