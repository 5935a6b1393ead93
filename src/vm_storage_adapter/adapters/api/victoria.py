"""
Instant-query adapter for Prometheus and VictoriaMetrics.

VictoriaMetrics in cluster mode scopes every read to a tenant and serves the
Prometheus query API below ``/select/<accountID>/prometheus``; a native
Prometheus server (or single-node VictoriaMetrics) serves it at the root.
The adapter reduces an instant query to one scalar so callers such as an
autoscaling loop can act on it directly.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from logging import Logger, LoggerAdapter
from typing import Callable, Mapping, Optional
from urllib.parse import quote, quote_plus

import httpx

from ...core.logging import log_failure
from ..base import AccountID, MetricStorageAdapter, VerificationResult
from ..errors import (
    AmbiguousResultError,
    EmptyResultError,
    EmptyValueError,
    InfiniteValueError,
    InsufficientValueError,
    QueryError,
    ValueParseError,
)
from .base import DEFAULT_TIMEOUT, BaseAPIClient
from .query_result import parse_query_response

NATIVE_QUERY_PATH = "/api/v1/query"
TENANT_QUERY_PATH = "/select/{account_id}/prometheus/api/v1/query"
_VERIFICATION_QUERY = "vector(1)"
_INFINITY_SPELLINGS = frozenset({"inf", "infinity"})


def _utc_now() -> datetime:
    return datetime.now(UTC)


def format_rfc3339(moment: datetime) -> str:
    """Render ``moment`` in UTC with second precision, e.g. ``2026-10-17T08:30:00Z``."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


class VMStorageAdapter(BaseAPIClient, MetricStorageAdapter):
    """
    Query a Prometheus-compatible backend for a single scalar value.

    Parameters
    ----------
    server_address:
        Base address of the backend, e.g. ``http://vmselect:8481``.
    is_prometheus:
        ``True`` for the single-tenant Prometheus API layout, ``False`` for the
        VictoriaMetrics multi-tenant layout.
    client:
        Shared :class:`httpx.Client`. The adapter never closes an injected client.
    logger:
        Logger receiving error records for failed queries.
    clock:
        Source of the evaluation time; defaults to the current UTC time.
    """

    def __init__(
        self,
        server_address: str,
        is_prometheus: bool,
        client: Optional[httpx.Client] = None,
        logger: Optional[LoggerAdapter | Logger] = None,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.is_prometheus = is_prometheus
        self._clock = clock or _utc_now
        super().__init__(base_url=server_address, client=client, logger=logger, timeout=timeout)

    @property
    def flavor(self) -> str:
        return "prometheus" if self.is_prometheus else "victoriametrics"

    def build_query_url(self, query: str, account_id: AccountID, moment: Optional[datetime] = None) -> str:
        timestamp = format_rfc3339(moment or self._clock())
        escaped = quote_plus(query, safe="")
        base = self.base_url.rstrip("/")
        if self.is_prometheus:
            path = NATIVE_QUERY_PATH
        else:
            path = TENANT_QUERY_PATH.format(account_id=quote(str(account_id), safe=":"))
        return f"{base}{path}?query={escaped}&time={timestamp}"

    def execute_query(
        self,
        query: str,
        custom_headers: Optional[Mapping[str, str]],
        ignore_null_values: bool,
        metric_name: str,
        account_id: AccountID,
        *,
        timeout: Optional[float] = None,
    ) -> float:
        """
        Evaluate ``query`` at the current instant and return its value.

        ``ignore_null_values`` turns an absent series, an empty or null sample
        and an infinite sample into ``0.0``. It never hides an ambiguous or
        malformed answer.

        Raises
        ------
        QueryError
            One of its subclasses describing the failure.
        """

        url = self.build_query_url(query, account_id)
        payload = self._get_json(url, headers=custom_headers, timeout=timeout)
        response = parse_query_response(payload)

        if not response.result:
            if ignore_null_values:
                return 0.0
            raise EmptyResultError(f"prometheus metrics {metric_name!r} target may be lost, the result is empty")
        if len(response.result) > 1:
            log_failure(
                self.logger,
                "prometheus query returned multiple series",
                extra={"query": query, "series": [dict(entry.metric) for entry in response.result]},
            )
            raise AmbiguousResultError(f"prometheus query {query!r} returned multiple elements")

        entry = response.result[0]
        if entry.pair_length == 0:
            if ignore_null_values:
                return 0.0
            raise EmptyValueError(f"prometheus metrics {metric_name!r} target may be lost, the value list is empty")
        if entry.sample is None:
            raise InsufficientValueError(f"prometheus query {query!r} didn't return enough values")

        if entry.sample.is_absent:
            if ignore_null_values:
                return 0.0
            raise EmptyValueError(f"prometheus metrics {metric_name!r} target may be lost, the value is null")

        value = self._parse_value(entry.sample.text or "")
        if math.isinf(value):
            if ignore_null_values:
                return 0.0
            error = InfiniteValueError(value)
            log_failure(self.logger, "Error converting prometheus value", error=error, extra={"query": query})
            raise error
        return value

    def _parse_value(self, text: str) -> float:
        try:
            # float() also accepts padding and digit separators, Prometheus never emits them
            if text != text.strip() or "_" in text:
                raise ValueError("invalid syntax")
            value = float(text)
            # float() turns out-of-range literals such as 1e400 into inf instead of failing
            if math.isinf(value) and text.lstrip("+-").lower() not in _INFINITY_SPELLINGS:
                raise ValueError("value out of range")
            return value
        except ValueError as exc:
            error = ValueParseError(text, str(exc))
            log_failure(self.logger, "Error converting prometheus value", error=error, extra={"prometheus_value": text})
            raise error from exc

    def verify(self, account_id: AccountID = 0) -> VerificationResult:
        try:
            value = self.execute_query(_VERIFICATION_QUERY, None, False, _VERIFICATION_QUERY, account_id)
        except QueryError as exc:
            return VerificationResult(success=False, message=f"Metric backend verification failed: {exc}")

        return VerificationResult(
            success=True,
            message="Metric backend reachable.",
            details={
                "server_address": self.base_url,
                "flavor": self.flavor,
                "account_id": None if self.is_prometheus else str(account_id),
                "value": value,
            },
        )
