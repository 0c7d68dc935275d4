"""
logging_setup.py

Process-wide logging configuration for TuneGuess.

- One stdout handler on the root logger, installed once.
- Plain text by default, or one JSON object per line when json_output is set.
- Modules log through logging.getLogger(__name__) and never configure handlers themselves.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_HANDLER_MARKER = "_tuneguess_handler"


class JsonFormatter(logging.Formatter):
    """Render log records as JSON for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "INFO", *, json_output: bool = False) -> logging.Logger:
    root = logging.getLogger()
    root.setLevel(getattr(logging, str(level).strip().upper(), logging.INFO))

    formatter: logging.Formatter = JsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT)

    for handler in root.handlers:
        if getattr(handler, _HANDLER_MARKER, False):
            handler.setFormatter(formatter)
            return root

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    setattr(stream_handler, _HANDLER_MARKER, True)
    root.addHandler(stream_handler)

    # googleapiclient logs every discovery lookup at INFO.
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    return root
