"""Logging setup driven by ``settings.log_level`` and ``settings.log_format``."""

import json
import logging
import logging.config
from datetime import UTC, datetime

from app.core.config import LogFormatEnum, settings


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def build_logging_config(level: str, log_format: LogFormatEnum) -> dict:
    formatter = "json" if log_format == LogFormatEnum.json else "simple"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "simple": {"format": "%(asctime)s %(levelname)s [%(name)s] %(message)s"},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "root": {"level": level, "handlers": ["console"]},
        "loggers": {
            # httpx logs every request at INFO
            "httpx": {"level": "WARNING"},
        },
    }


def setup_logging() -> None:
    logging.config.dictConfig(build_logging_config(settings.log_level.value, settings.log_format))
