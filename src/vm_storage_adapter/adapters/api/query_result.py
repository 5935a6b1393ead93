"""
Decoding of the Prometheus instant-query response envelope.

The ``value`` member of every result entry is a heterogeneous pair
``[timestamp, value]`` where the value is either a decimal string or ``null``.
The pair is decoded explicitly into :class:`SampleValue` so downstream code
never inspects untyped JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from ..errors import DecodeError


class SampleKind(str, Enum):
    ABSENT = "absent"
    NUMERIC = "numeric"


@dataclass(frozen=True, slots=True)
class SampleValue:
    """Tagged variant for the second element of a value pair."""

    kind: SampleKind
    text: Optional[str] = None

    @classmethod
    def decode(cls, raw: Any) -> "SampleValue":
        if raw is None:
            return cls(kind=SampleKind.ABSENT)
        if isinstance(raw, str):
            return cls(kind=SampleKind.NUMERIC, text=raw)
        raise DecodeError(f"sample value must be a string or null, got {type(raw).__name__}")

    @property
    def is_absent(self) -> bool:
        return self.kind is SampleKind.ABSENT


@dataclass(frozen=True, slots=True)
class QueryResultEntry:
    """
    One series of an instant vector.

    Attributes
    ----------
    metric:
        Label set of the series. Carried for diagnostics only.
    pair_length:
        Number of elements found in the ``value`` member.
    timestamp:
        Evaluation timestamp when the pair carries a numeric one.
    sample:
        Decoded second element, ``None`` when the pair is shorter than two.
    """

    metric: Mapping[str, str] = field(default_factory=dict)
    pair_length: int = 0
    timestamp: Optional[float] = None
    sample: Optional[SampleValue] = None


@dataclass(frozen=True, slots=True)
class QueryResponse:
    status: str = ""
    result_type: str = ""
    result: Tuple[QueryResultEntry, ...] = ()


def _optional_str(container: Mapping[str, Any], key: str) -> str:
    value = container.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _decode_entry(raw: Any) -> QueryResultEntry:
    if not isinstance(raw, dict):
        raise DecodeError(f"result entry must be an object, got {type(raw).__name__}")

    metric = raw.get("metric")
    if metric is None:
        metric = {}
    if not isinstance(metric, dict):
        raise DecodeError("result entry 'metric' must be an object")

    pair = raw.get("value")
    if pair is None:
        pair = []
    if not isinstance(pair, list):
        raise DecodeError("result entry 'value' must be an array")

    timestamp: Optional[float] = None
    sample: Optional[SampleValue] = None
    if pair and isinstance(pair[0], (int, float)) and not isinstance(pair[0], bool):
        timestamp = float(pair[0])
    if len(pair) >= 2:
        sample = SampleValue.decode(pair[1])

    return QueryResultEntry(
        metric={str(key): str(value) for key, value in metric.items()},
        pair_length=len(pair),
        timestamp=timestamp,
        sample=sample,
    )


def parse_query_response(payload: Any) -> QueryResponse:
    """
    Validate a decoded JSON document against the instant-query envelope.

    Missing members decode to their empty values; members of the wrong type
    raise :class:`~vm_storage_adapter.adapters.errors.DecodeError`.
    """

    if not isinstance(payload, dict):
        raise DecodeError(f"response must be a JSON object, got {type(payload).__name__}")

    data = payload.get("data")
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise DecodeError("response 'data' must be an object")

    entries = data.get("result")
    if entries is None:
        entries = []
    if not isinstance(entries, list):
        raise DecodeError("response 'data.result' must be an array")

    return QueryResponse(
        status=_optional_str(payload, "status"),
        result_type=_optional_str(data, "resultType"),
        result=tuple(_decode_entry(entry) for entry in entries),
    )
