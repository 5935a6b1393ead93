"""
Logging helpers for the metric storage adapter.

Records carry their context (backend address, query, status code) as
``extra`` attributes, and :class:`StructuredLogFormatter` renders them as
``key=value`` pairs after the message. Obtain loggers through
:func:`get_logger` so every record shares one handler and layout.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from logging import Logger, LoggerAdapter
from typing import Any, Iterable, Mapping, MutableMapping, Optional

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_LEVEL = "INFO"
_ENV_LEVEL = "VM_ADAPTER_LOG_LEVEL"

# Rendered first, in this order; any other extra follows alphabetically.
_LEADING_EXTRAS = ("method", "url", "status_code", "query", "prometheus_value", "error", "server_address")
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__) | {"message", "asctime"}


def _resolve_level(level: Optional[int | str]) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName((level or os.getenv(_ENV_LEVEL) or DEFAULT_LEVEL).upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def _record_extras(record: logging.LogRecord) -> Iterable[tuple[str, Any]]:
    extras = {key: value for key, value in record.__dict__.items() if key not in _RECORD_ATTRS and not key.startswith("_") and value is not None}
    for key in _LEADING_EXTRAS:
        if key in extras:
            yield key, extras.pop(key)
    yield from sorted(extras.items())


def _render(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return "[" + ", ".join(_render(item) for item in value) + "]"
    if isinstance(value, Mapping):
        return json.dumps(value, ensure_ascii=False, default=str)
    return str(value)


class StructuredLogFormatter(logging.Formatter):
    """Append a record's extras to the formatted line as ``key=value`` pairs."""

    def __init__(self) -> None:
        super().__init__(DEFAULT_FORMAT, datefmt=DEFAULT_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        extras = " ".join(f"{key}={_render(value)}" for key, value in _record_extras(record))
        return f"{line} | {extras}" if extras else line


def configure_logging(level: Optional[int | str] = None, *, force: bool = False) -> None:
    """
    Install a stderr handler with :class:`StructuredLogFormatter` on the root logger.

    Nothing happens when the root logger already has handlers, unless ``force``
    is set. ``level`` falls back to ``VM_ADAPTER_LOG_LEVEL``, then ``INFO``.
    """

    root = logging.getLogger()
    if root.handlers and not force:
        return
    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(StructuredLogFormatter())
    logging.basicConfig(level=_resolve_level(level), handlers=[handler], force=True)


def get_logger(name: str, *, extra: Optional[Mapping[str, object]] = None) -> LoggerAdapter:
    """Return a :class:`logging.LoggerAdapter` whose ``extra`` is attached to every record."""

    configure_logging()
    return LoggerAdapter(logging.getLogger(name), {key: value for key, value in (extra or {}).items() if value is not None})


def _emit(logger: LoggerAdapter | Logger, level: int, message: str, payload: Mapping[str, object]) -> None:
    # LoggerAdapter.process would replace the per-call extra with the adapter's own
    if isinstance(logger, LoggerAdapter):
        merged: MutableMapping[str, object] = dict(logger.extra or {})
        merged.update(payload)
        logger.logger.log(level, message, extra=merged or None)
        return
    logger.log(level, message, extra=dict(payload) or None)


def log_progress(logger: LoggerAdapter | Logger, message: str, *, extra: Optional[Mapping[str, object]] = None) -> None:
    """Emit a debug record, e.g. for each HTTP request and response."""

    _emit(logger, logging.DEBUG, message, {key: value for key, value in (extra or {}).items() if value is not None})


def log_failure(
    logger: LoggerAdapter | Logger,
    message: str,
    *,
    error: Optional[BaseException] = None,
    extra: Optional[Mapping[str, object]] = None,
) -> None:
    """
    Emit an error-level record describing ``error`` alongside structured context.

    The exception text is recorded under the ``error`` extra rather than as a
    traceback so the record stays on a single line.
    """

    payload: MutableMapping[str, object] = {key: value for key, value in (extra or {}).items() if value is not None}
    if error is not None:
        payload["error"] = str(error)
    _emit(logger, logging.ERROR, message, payload)
