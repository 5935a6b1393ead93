"""Cross-cutting helpers shared by adapters and the CLI."""

from .logging import StructuredLogFormatter, configure_logging, get_logger, log_failure, log_progress

__all__ = [
    "StructuredLogFormatter",
    "configure_logging",
    "get_logger",
    "log_failure",
    "log_progress",
]
