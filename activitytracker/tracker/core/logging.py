"""
Logging setup for the tracker.
Console output always; an optional plain file handler for the activity log file.
"""
from __future__ import annotations

import logging.config
from typing import Any

from tracker.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def build_logging_config(settings: Settings) -> dict[str, Any]:
    handlers: dict[str, dict[str, Any]] = {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    }
    if settings.LOG_FILE:
        handlers["activity_file"] = {
            "class": "logging.FileHandler",
            "formatter": "default",
            "filename": settings.LOG_FILE,
            "encoding": "utf-8",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {"default": {"format": LOG_FORMAT}},
        "handlers": handlers,
        "loggers": {
            "tracker": {
                "handlers": list(handlers),
                "level": settings.LOG_LEVEL.upper(),
                "propagate": False,
            },
        },
    }


def configure_logging(settings: Settings) -> None:
    """Apply the tracker logging configuration. Safe to call more than once."""
    logging.config.dictConfig(build_logging_config(settings))
