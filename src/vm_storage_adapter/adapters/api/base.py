"""
Shared HTTP utilities for metric storage adapters.

The helper wraps an injected :class:`httpx.Client`: it keeps the code
synchronous, performs exactly one round trip per call (retry and backoff
belong to the caller), and maps every failure onto the
:mod:`~vm_storage_adapter.adapters.errors` hierarchy with rich messages.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import Logger, LoggerAdapter
from typing import Any, Mapping, Optional

import httpx

from ...core.logging import get_logger, log_failure, log_progress
from ..errors import DecodeError, HTTPStatusError, ReadError, TransportError

DEFAULT_TIMEOUT = 15.0


@dataclass(slots=True)
class BaseAPIClient:
    """
    Base synchronous HTTP client bound to one backend.

    Parameters
    ----------
    base_url:
        Root URL for the upstream service.
    client:
        Shared HTTP client. When omitted a private client is created and
        released by :meth:`close`.
    logger:
        Logger receiving request diagnostics and error records.
    timeout:
        Timeout in seconds used for a privately created client.
    """

    base_url: str
    client: Optional[httpx.Client] = None
    logger: Optional[LoggerAdapter | Logger] = None
    timeout: float = DEFAULT_TIMEOUT
    _owns_client: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = get_logger(
                f"{self.__class__.__module__}.{self.__class__.__name__}",
                extra={"server_address": self.base_url},
            )
        if self.client is None:
            self.client = self._build_client()
            self._owns_client = True

    def _build_client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, follow_redirects=True)

    def close(self) -> None:
        """Release the HTTP client when it was created by this instance."""

        if self._owns_client and self.client is not None:
            self.client.close()

    def __enter__(self) -> "BaseAPIClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """
        Issue one request and return the fully read response.

        ``timeout`` bounds the whole exchange. httpx applies it per phase and
        restarts the read timer on every chunk, so the body is read chunk by
        chunk against a single deadline.
        """

        log_progress(self.logger, "HTTP request", extra={"method": method, "url": url})
        deadline = None if timeout is None else time.monotonic() + timeout
        request_timeout: Any = httpx.USE_CLIENT_DEFAULT if timeout is None else timeout

        try:
            request = self.client.build_request(method, url, headers=dict(headers or {}), timeout=request_timeout)
            streamed = self.client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"HTTP error while calling {method} {url}: {exc}") from exc

        chunks: list[bytes] = []
        try:
            for chunk in streamed.iter_bytes():
                chunks.append(chunk)
                self._check_deadline(deadline, method, url)
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise ReadError(f"Failed to read response body from {method} {url}: {exc}") from exc
        finally:
            streamed.close()
        self._check_deadline(deadline, method, url)

        # iter_bytes already removed any content encoding
        decoded_headers = streamed.headers.copy()
        decoded_headers.pop("content-encoding", None)
        decoded_headers.pop("content-length", None)
        response = httpx.Response(streamed.status_code, headers=decoded_headers, content=b"".join(chunks), request=request)

        if not response.is_success:
            error = HTTPStatusError(response.status_code, response.text)
            log_failure(
                self.logger,
                "prometheus query api returned error",
                error=error,
                extra={"method": method, "url": url, "status_code": response.status_code},
            )
            raise error

        log_progress(self.logger, "HTTP response", extra={"status_code": response.status_code, "url": url})
        return response

    @staticmethod
    def _check_deadline(deadline: Optional[float], method: str, url: str) -> None:
        if deadline is not None and time.monotonic() > deadline:
            raise TransportError(f"{method} {url} did not complete before its deadline")

    def _get_json(
        self,
        url: str,
        *,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        response = self._request("GET", url, headers=headers, timeout=timeout)
        try:
            return response.json()
        except ValueError as exc:
            raise DecodeError(f"Failed to decode JSON from {url}: {exc}") from exc
