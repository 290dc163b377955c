"""
Logging setup for the requirements backend.

``setup_logging()`` is called once from ``app.main``; modules only ask for
``logging.getLogger(__name__)``.
"""

import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Optional

from app.core.config import Settings


class JSONFormatter(logging.Formatter):
    """Single-line JSON records for log collectors."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        if record.exc_info and record.exc_info[0]:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


def build_logging_config(level: str = "INFO", fmt: str = "standard") -> dict:
    formatter = "json" if fmt == "json" else "standard"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": JSONFormatter,
            },
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
                "stream": "ext://sys.stderr",
            },
        },
        "root": {
            "level": level.upper(),
            "handlers": ["console"],
        },
        "loggers": {
            "app": {"level": level.upper()},
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
    }


def setup_logging(settings: Optional[Settings] = None) -> None:
    if settings is None:
        settings = Settings()
    logging.config.dictConfig(build_logging_config(settings.log_level, settings.log_format))
