# src/safe_load_gate/logs.py
# Logging setup for the CLI.

"""
Library modules log through `logging.getLogger(__name__)` and attach the
gate context (`node`, `annotation`) as record extras. `configure_logging`
installs one handler on the package logger:

- text: rich console output on stderr, context appended as key=value
- json: one JSON object per line, context as top-level fields
"""

import json
import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from safe_load_gate.errors import ConfigInvalidError

LOG_FORMATS = ("text", "json")
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}
CONTEXT_FIELDS = ("node", "annotation")
PACKAGE_LOGGER = "safe_load_gate"


def _context(record: logging.LogRecord) -> dict[str, str]:
    return {
        field: str(getattr(record, field))
        for field in CONTEXT_FIELDS
        if getattr(record, field, None)
    }


class KeyValueFormatter(logging.Formatter):
    """Appends the gate context to the message as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        pairs = " ".join(f"{k}={v}" for k, v in _context(record).items())
        return f"{message} {pairs}" if pairs else message


class JsonFormatter(logging.Formatter):
    """One JSON document per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, object] = {
            "ts": self.formatTime(record),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(_context(record))
        if record.exc_info:
            payload["error"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(
    level: str = "info",
    fmt: str = "text",
    console: Optional[Console] = None,
) -> logging.Logger:
    """Configure the package logger and return it."""
    level_value = LOG_LEVELS.get(level.lower())
    if level_value is None:
        raise ConfigInvalidError(
            f"invalid log level {level!r}, expected one of: {', '.join(LOG_LEVELS)}"
        )
    if fmt not in LOG_FORMATS:
        raise ConfigInvalidError(
            f"invalid log format {fmt!r}, expected one of: {', '.join(LOG_FORMATS)}"
        )

    if fmt == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
    else:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(KeyValueFormatter("%(message)s"))

    log = logging.getLogger(PACKAGE_LOGGER)
    for existing in list(log.handlers):
        log.removeHandler(existing)
    log.addHandler(handler)
    log.setLevel(level_value)
    log.propagate = False
    return log
