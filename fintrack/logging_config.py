"""
Logging for the fintrack command line.

Log records go to stderr so the report tables printed on stdout stay clean.
LOG_LEVEL picks the level (INFO by default) and LOG_JSON=1 writes one JSON
object per record.
"""
import json
import logging
import os
import sys
from datetime import datetime

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created).astimezone().isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _env_level() -> int:
    level = logging.getLevelName((os.getenv("LOG_LEVEL") or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def use_json_logs() -> bool:
    return os.getenv("LOG_JSON", "").lower() in ("1", "true", "yes")


def configure_logging(level: int | None = None) -> None:
    """Route fintrack logs to stderr; an explicit `level` overrides LOG_LEVEL."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if use_json_logs() else logging.Formatter(TEXT_FORMAT))
    logging.basicConfig(level=level or _env_level(), handlers=[handler], force=True)
