from __future__ import annotations

import logging
import logging.config
from typing import Any

from .settings import settings

LOGGER_NAME = "swtch"

_configured = False


def get_logging_config(level: str | None = None) -> dict[str, Any]:
    level = (level or settings.log_level).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "standard",
                "stream": "ext://sys.stderr",
            },
        },
        "loggers": {
            LOGGER_NAME: {"level": level, "handlers": ["console"], "propagate": False},
            "httpx": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "urllib3": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def setup_logging(level: str | None = None) -> None:
    global _configured
    if _configured:
        return
    logging.config.dictConfig(get_logging_config(level))
    _configured = True


def log_event(level: str, message: str, container_id: str | None = None) -> None:
    """Log a registrar event, prefixed with the short container id when given."""
    if container_id:
        message = f"[{container_id[:12]}] {message}"
    logging.getLogger(LOGGER_NAME).log(logging.getLevelName(level.upper()), message)
