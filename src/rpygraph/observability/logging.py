"""Structured logging for rpygraph.

Engine modules log through structlog at DEBUG with snake_case event names
and structured counts; the CLI decides where those events end up:

- the console (stderr, rendered by rich), filtered by ``-v``;
- optionally a JSONL file (``--log``) that receives every event.

Events emitted while a project is bound (see :func:`bind_project`) carry
a ``project`` field so log files from several runs can be told apart.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path  # noqa: TC003 - Used at runtime for path operations
from typing import TYPE_CHECKING, Any

import structlog
from rich.console import Console
from rich.logging import RichHandler

if TYPE_CHECKING:
    from structlog.typing import Processor

VERBOSITY_LEVELS = {0: logging.WARNING, 1: logging.INFO}

_configured = False
_file_handler: logging.FileHandler | None = None
_log_file: Path | None = None


class JSONLFileHandler(logging.FileHandler):
    """Append each record as one JSON object.

    structlog events arrive as a dict in ``record.msg``; their ``event``
    key becomes ``message`` and every other key is written as a field.
    Plain stdlib records keep their formatted message.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry: dict[str, Any] = {
                "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
            }
            if isinstance(record.msg, dict):
                fields = {
                    k: v for k, v in record.msg.items() if k not in ("level", "timestamp")
                }
                entry["message"] = fields.pop("event", "")
                entry.update(fields)
            else:
                entry["message"] = record.getMessage()

            if self.stream is None:
                self.stream = self._open()
            self.stream.write(json.dumps(entry, default=str) + "\n")
            self.flush()
        except Exception:
            self.handleError(record)


def _console_handler(verbosity: int) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        level=VERBOSITY_LEVELS.get(verbosity, logging.DEBUG),
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=verbosity >= 2,
        show_time=verbosity >= 1,
        show_path=verbosity >= 2,
    )


def _open_file_handler(log_file: Path) -> JSONLFileHandler:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = JSONLFileHandler(str(log_file), mode="a", encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    return handler


def configure_logging(verbosity: int = 0, log_file: Path | None = None) -> None:
    """Route rpygraph log events to the console and an optional JSONL file.

    Safe to call repeatedly; a previously opened log file is closed first.

    Args:
        verbosity: Console threshold. 0 shows warnings, 1 adds info,
            2 or more adds debug events.
        log_file: If given, every event (DEBUG and up) is also appended
            to this file, one JSON object per line.
    """
    global _configured, _file_handler, _log_file

    close_file_logging()

    handlers: list[logging.Handler] = [_console_handler(verbosity)]
    if log_file is not None:
        _file_handler = _open_file_handler(log_file)
        _log_file = log_file
        handlers.append(_file_handler)

    # The file sink wants DEBUG even when the console only shows warnings.
    threshold = logging.DEBUG if (verbosity > 0 or log_file is not None) else logging.WARNING
    logging.basicConfig(level=threshold, format="%(message)s", handlers=handlers, force=True)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Return a structlog logger, configuring defaults on first use.

    Args:
        name: Logger name, normally the calling module's ``__name__``.
    """
    if not _configured:
        configure_logging()

    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger


def bind_project(name: str) -> None:
    """Tag every following event in this context with ``project=name``."""
    structlog.contextvars.bind_contextvars(project=name)


def get_log_file() -> Path | None:
    """Path of the active JSONL log file, or None."""
    return _log_file


def close_file_logging() -> None:
    """Close the JSONL log file, if one is open."""
    global _file_handler, _log_file
    if _file_handler is not None:
        _file_handler.close()
        _file_handler = None
    _log_file = None
