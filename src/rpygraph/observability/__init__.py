"""Observability module for rpygraph.

Provides structured logging for the analysis engine and the CLI.
"""

from rpygraph.observability.logging import (
    bind_project,
    close_file_logging,
    configure_logging,
    get_log_file,
    get_logger,
)

__all__ = [
    "bind_project",
    "close_file_logging",
    "configure_logging",
    "get_log_file",
    "get_logger",
]
