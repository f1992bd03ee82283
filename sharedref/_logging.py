"""
Structured logging for handle lifecycle events.

Records follow the OpenTelemetry Logging Data Model when rendered as JSON,
or a one-line terminal form otherwise. The library only emits DEBUG events
(payload destroyed, block freed) and ERROR events (count misuse), so the
default level keeps it silent.

Usage::

    from ._logging import scoped_logger

    log = scoped_logger("block")
    log.debug("Payload destroyed", extra={"block_id": id(block)})

Environment::

    SHAREDREF_LOG_LEVEL=trace|debug|info|warn|error|fatal|off (default: warn)
    SHAREDREF_LOG_FORMAT=json|human (default: human if tty, json if piped)
"""

from __future__ import annotations

import json
import logging
import os
import sys
from collections.abc import MutableMapping
from datetime import datetime, timezone
from typing import Any

from ._version import __version__

__all__ = ["logger", "setup_logging", "scoped_logger"]

_OFF = logging.CRITICAL + 10

_LEVELS = {
    "trace": logging.DEBUG,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "critical": logging.CRITICAL,
    "off": _OFF,
}

_SEVERITY = {
    logging.DEBUG: "DEBUG",
    logging.INFO: "INFO",
    logging.WARNING: "WARN",
    logging.ERROR: "ERROR",
    logging.CRITICAL: "FATAL",
}

# Debug events are lifecycle traces; errors are misuse. Both want a location.
_WITH_LOCATION = {logging.DEBUG, logging.ERROR, logging.CRITICAL}

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "scope"}

_MODULE_SCOPES = {"_control": "block"}


def _parse_level(level: str | int, default: int) -> int:
    if isinstance(level, int):
        return level
    return _LEVELS.get(level.lower(), default)


def _infer_scope(logger_name: str) -> str:
    """Scope for records logged without one: the last part of the logger name."""
    if not logger_name or logger_name == logger.name:
        return logger.name
    leaf = logger_name.rsplit(".", 1)[-1]
    return _MODULE_SCOPES.get(leaf, leaf)


def _scope_of(record: logging.LogRecord) -> str:
    return getattr(record, "scope", None) or _infer_scope(record.name)


def _package_path(pathname: str) -> str:
    """Path relative to the package directory, when inside it."""
    marker = "sharedref/"
    index = pathname.rfind(marker)
    return pathname[index + len(marker) :] if index >= 0 else pathname


# =============================================================================
# Formatters
# =============================================================================


class JsonFormatter(logging.Formatter):
    """One JSON object per record, OpenTelemetry field names."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        attributes: dict[str, Any] = {"scope": _scope_of(record)}
        attributes.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        )
        if record.levelno in _WITH_LOCATION:
            attributes["code.filepath"] = _package_path(record.pathname)
            attributes["code.lineno"] = record.lineno

        return json.dumps(
            {
                # RFC3339 with nanosecond digits (microseconds padded)
                "timestamp": created.strftime("%Y-%m-%dT%H:%M:%S")
                + f".{created.microsecond * 1000:09d}Z",
                "severityText": _SEVERITY.get(record.levelno, "INFO"),
                "body": record.getMessage(),
                "attributes": attributes,
                "resource": {
                    "service.name": "sharedref",
                    "service.version": __version__,
                },
            },
            separators=(",", ":"),
            default=repr,
        )


class HumanFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL [scope] message (block=0x..) [file:line]``"""

    _RESET = "\x1b[0m"
    _SCOPE_COLOR = "\x1b[36m"
    _DIM = "\x1b[2m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self._use_colors = use_colors

    def _paint(self, text: str, color: str) -> str:
        if not self._use_colors or not color:
            return text
        return f"{color}{text}{self._RESET}"

    @staticmethod
    def _level_color(levelno: int) -> str:
        if levelno >= logging.ERROR:
            return "\x1b[31m"
        if levelno >= logging.WARNING:
            return "\x1b[33m"
        if levelno <= logging.DEBUG:
            return "\x1b[2m"
        return ""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        severity = f"{_SEVERITY.get(record.levelno, 'INFO'):<5}"
        line = (
            f"{created:%H:%M:%S} "
            f"{self._paint(severity, self._level_color(record.levelno))} "
            f"{self._paint(f'[{_scope_of(record)}]', self._SCOPE_COLOR)} "
            f"{record.getMessage()}"
        )
        block_id = getattr(record, "block_id", None)
        if block_id is not None:
            line += f" (block={block_id:#x})"
        if record.levelno in _WITH_LOCATION:
            location = f"[{_package_path(record.pathname)}:{record.lineno}]"
            line += " " + self._paint(location, self._DIM)
        return line


# =============================================================================
# Logger Setup
# =============================================================================

logger = logging.getLogger("sharedref")


def _make_handler(fmt: str | None = None) -> logging.Handler:
    fmt = (fmt or os.environ.get("SHAREDREF_LOG_FORMAT") or "").lower()
    if not fmt:
        fmt = "human" if sys.stderr.isatty() else "json"
    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(HumanFormatter(use_colors=sys.stderr.isatty()))
    return handler


def setup_logging(level: str | int = "INFO", format: str | None = None) -> None:
    """
    Replace the sharedref logger's handler.

    Parameters
    ----------
    level : str or int, default "INFO"
        Level name ("debug", "warn", "off", ...) or a ``logging`` constant.

    format : str, optional
        "json" or "human". Defaults to SHAREDREF_LOG_FORMAT, then TTY detection.

    Examples
    --------
    Trace every payload destruction and block reclamation::

        >>> import sharedref
        >>> sharedref.setup_logging("DEBUG", format="human")
    """
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.addHandler(_make_handler(format))
    logger.setLevel(_parse_level(level, logging.INFO))


class _ScopedLoggerAdapter(logging.LoggerAdapter):
    """Adds a fixed scope; per-call ``extra`` is merged on top."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        kwargs["extra"] = {**(self.extra or {}), **kwargs.get("extra", {})}
        return msg, kwargs


def scoped_logger(scope: str) -> logging.LoggerAdapter:
    """Logger adapter that tags every record with ``scope``."""
    return _ScopedLoggerAdapter(logger, {"scope": scope})


def _default_level() -> int:
    name = os.environ.get("SHAREDREF_LOG_LEVEL") or os.environ.get("SHAREDREF_LOG", "warn")
    return _parse_level(name, logging.WARNING)


# Leave logging alone if the application configured this logger first.
if not logger.handlers:
    logger.addHandler(_make_handler())
    logger.setLevel(_default_level())
