"""Logging setup shared by the CLI commands.

Locally, uses a human-readable plain-text format on stderr. With
``json_format`` enabled, emits one JSON object per line::

    {"severity": "INFO", "message": "...", "logger": "...", "time": "..."}
"""

from __future__ import annotations

import json
import logging
import sys


class JsonLineFormatter(logging.Formatter):
    """JSON formatter emitting one structured entry per record."""

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as a JSON object with severity."""
        entry = {
            "severity": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        }
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(level: str = "INFO", *, json_format: bool = False) -> None:
    """Install a single stderr handler on the root logger.

    Args:
        level: Log level name (``DEBUG``, ``INFO``, ...).
        json_format: Emit JSON lines instead of plain text.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    if json_format:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s %(levelname)-8s %(name)s — %(message)s",
                datefmt="%Y-%m-%dT%H:%M:%S",
            )
        )
    logging.root.handlers.clear()
    logging.root.addHandler(handler)
    logging.root.setLevel(log_level)

    # Playwright's driver and pynput are chatty at DEBUG
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("pynput").setLevel(logging.WARNING)
