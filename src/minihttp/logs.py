"""
Logging setup.

Every module logs through ``logging.getLogger(__name__)``; this module
only decides where those records go and how they look. Two formats:

    text    2026-01-01 12:00:00 [INFO] minihttp.access: 127.0.0.1 - "GET /" 200 0.41ms
    json    {"time": "...", "level": "INFO", "logger": "minihttp.access", "message": "..."}

JSON is one object per line, ready for a log aggregator.
"""

import json
import logging
from datetime import datetime, timezone


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class JSONFormatter(logging.Formatter):
    """Render a record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure the root logger once for the whole process.

    Args:
        level: Level name (DEBUG, INFO, ...).
        log_format: "text" or "json".
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)
    logging.getLogger("minihttp").setLevel(numeric_level)
