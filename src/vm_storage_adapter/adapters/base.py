"""
Base protocols for metric storage adapters.

Adapters are intentionally narrow in scope: they issue a single instant query
and reduce the answer to one scalar. Higher level orchestration (retry logic,
scaling decisions, scheduling) is the caller's concern to keep adapters
reusable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol, Union

AccountID = Union[int, str]


class AdapterError(RuntimeError):
    """Raised when an adapter encounters a non-recoverable error."""


@dataclass(slots=True)
class VerificationResult:
    """
    Structured response returned by adapter verification routines.

    Attributes
    ----------
    success:
        Indicates whether the verification succeeded.
    message:
        Human-readable summary.
    details:
        Optional structured metadata such as the backend flavor or the
        queried endpoint.
    """

    success: bool
    message: str
    details: Optional[Mapping[str, object]] = None


class MetricStorageAdapter(Protocol):
    """Protocol implemented by metric storage adapters."""

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
        """Evaluate ``query`` as an instant query and return its single scalar value."""

    def verify(self) -> VerificationResult:
        """Perform a lightweight connectivity check."""
