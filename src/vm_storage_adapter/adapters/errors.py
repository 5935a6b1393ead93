"""
Error hierarchy raised by metric queries.

Every failure derives from :class:`QueryError` and carries the informational
sentinel ``value == -1.0``. Callers must branch on the exception, never on the
sentinel.
"""

from __future__ import annotations

from .base import AdapterError

SENTINEL_VALUE = -1.0


class QueryError(AdapterError):
    """Base class for every failure of a metric query."""

    value: float = SENTINEL_VALUE


class TransportError(QueryError):
    """The request could not be issued or timed out before a response arrived."""


class ReadError(QueryError):
    """The response body could not be read."""


class HTTPStatusError(QueryError):
    """The backend answered with a status outside the 2xx range."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"prometheus query api returned error. status: {status_code} response: {body}")
        self.status_code = status_code
        self.body = body


class DecodeError(QueryError):
    """The response body is not a valid query response envelope."""


class EmptyResultError(QueryError):
    """The result set is empty and null values are not tolerated."""


class AmbiguousResultError(QueryError):
    """The query matched more than one series."""


class EmptyValueError(QueryError):
    """The single result carries no sample and null values are not tolerated."""


class InsufficientValueError(QueryError):
    """The value pair is shorter than ``[timestamp, value]``."""


class ValueParseError(QueryError):
    """The sample value is not a decimal number."""

    def __init__(self, raw_value: str, reason: str) -> None:
        super().__init__(f"cannot parse prometheus value {raw_value!r}: {reason}")
        self.raw_value = raw_value


class InfiniteValueError(QueryError):
    """The sample value is positive or negative infinity."""

    def __init__(self, parsed: float) -> None:
        super().__init__(f"prometheus query returns {parsed}")
        self.parsed = parsed
