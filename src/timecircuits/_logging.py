"""Log formatting for clock controller diagnostics.

The controller logs every mode change, push and pop at DEBUG and passes
the resulting clock state along with the record (``extra=`` keys
``clock_mode`` and ``clock_depth``).  The formatters here surface that
state, so a test log shows where virtual time was at each step:

* :class:`JsonFormatter` writes one JSON object per line with ``mode``
  and ``depth`` fields, for CI systems that collect structured logs.
* the text format appends ``[mode, depth=N]`` to the usual line.

:func:`configure_logging` wires the root logger from
:class:`LoggingSettings`.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from logging.handlers import RotatingFileHandler
from typing import Any

from timecircuits._settings import LoggingSettings

MODE_ATTR = "clock_mode"
DEPTH_ATTR = "clock_depth"

_BYTES_PER_MB = 1 << 20

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def _clock_state(record: logging.LogRecord) -> tuple[str, int] | None:
    """Return the ``(mode, depth)`` a controller attached, if any."""
    mode = getattr(record, MODE_ATTR, None)
    if mode is None:
        return None
    return str(mode), int(getattr(record, DEPTH_ATTR, 0))


class JsonFormatter(logging.Formatter):
    """One JSON object per record.

    Always present: ``timestamp`` (the real UTC creation time of the
    record, never virtual time), ``level``, ``logger``, ``message`` and
    ``service``.  ``mode`` and ``depth`` appear on controller records;
    ``version``, ``exception`` and ``stack_info`` only when there is
    something to report.
    """

    def __init__(self, *, service: str = "", version: str = "") -> None:
        super().__init__()
        self._static: dict[str, str] = {"service": service}
        if version:
            self._static["version"] = version

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=UTC)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **self._static,
        }
        state = _clock_state(record)
        if state is not None:
            entry["mode"], entry["depth"] = state
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack_info"] = self.formatStack(record.stack_info)
        return json.dumps(entry, default=str)


class _TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        state = _clock_state(record)
        if state is None:
            return line
        mode, depth = state
        return f"{line} [{mode}, depth={depth}]"


def configure_logging(
    settings: LoggingSettings,
    *,
    service: str,
    version: str = "",
) -> None:
    """Replace the root logger's handlers according to *settings*.

    Output always goes to ``stderr``; ``settings.file`` adds a
    :class:`~logging.handlers.RotatingFileHandler` that rotates at
    ``max_file_size_mb`` and keeps ``backup_count`` old files.
    *service* and *version* label JSON lines.
    """
    formatter: logging.Formatter
    if settings.format == "json":
        formatter = JsonFormatter(service=service, version=version)
    else:
        formatter = _TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.file is not None:
        handlers.append(
            RotatingFileHandler(
                settings.file,
                maxBytes=settings.max_file_size_mb * _BYTES_PER_MB,
                backupCount=settings.backup_count,
            )
        )

    root = logging.getLogger()
    for stale in list(root.handlers):
        root.removeHandler(stale)
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(settings.level)
