"""Root logging configuration (plain text by default, one-line JSON optional)."""

from __future__ import annotations

import json
import logging
import logging.config

TEXT_FORMAT = "%(levelname)s %(asctime)s %(name)s: %(message)s"


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(level: str = "INFO", *, use_json: bool = False) -> None:
    """Configure the root logger and quiet chatty third-party loggers."""
    level = level.upper()
    formatter: dict[str, object]
    if use_json:
        formatter = {"()": JsonFormatter}
    else:
        formatter = {"format": TEXT_FORMAT}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": formatter},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "level": level,
                },
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": {
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
                "uvicorn.access": {"level": "WARNING"},
            },
        }
    )
