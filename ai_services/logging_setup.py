"""Root logger setup for the CLI."""

from __future__ import annotations

import json
import logging

from rich.console import Console
from rich.logging import RichHandler

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class JsonFormatter(logging.Formatter):
    """Formats log records as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_object["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(log_object)


def configure_logging(level: str = "info", fmt: str = "text") -> logging.Handler:
    """Install a single handler on the root logger.

    ``text`` logs go through rich to stderr; ``json`` writes JSON lines.
    Existing root handlers are replaced so repeated calls do not duplicate
    output.
    """
    if fmt == "json":
        handler: logging.Handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
    elif fmt == "text":
        handler = RichHandler(console=Console(stderr=True), show_path=False)
    else:
        raise ValueError(f"Unsupported log format: {fmt!r}. Supported: text, json")

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(_LEVELS.get(level.lower(), logging.INFO))
    # SDK transports are noisy at debug level.
    logging.getLogger("httpx").setLevel(max(root_logger.level, logging.WARNING))
    return handler
