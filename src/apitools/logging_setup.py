"""
Root logging configuration for services built on apitools.

    setup_logging("INFO")             # 2024-05-01 10:00:00 [INFO] apitools.access: GET / 200 ...
    setup_logging("INFO", "json")     # {"timestamp": ..., "level": "INFO", "logger": ..., ...}

JSON lines carry the access log fields (status_code, path, ...) as
top-level keys, taken from the record's ``extra`` attributes.
"""

import json
import logging
from datetime import datetime, timezone


TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", log_format: str = "text") -> None:
    """
    Configure the root logger: one stream handler, given level and format.

    Replaces handlers installed by an earlier call, so it is safe to call
    again after reloading configuration.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT))

    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)
    logging.getLogger("apitools").setLevel(numeric_level)
