"""
Logging Setup

One console handler for the gateway, uvicorn and httpx. The gateway level
follows LOG_LEVEL, or DEBUG when LOG_LEVEL is unset.
"""

import logging.config
from typing import Optional

from responses_gateway.config import Settings, get_settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"

# Third-party loggers and the level they are capped at
LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    # httpx logs every provider and MCP request at INFO
    "httpx": "WARNING",
    "httpcore": "WARNING",
}


def resolve_log_level(settings: Settings) -> str:
    if settings.LOG_LEVEL:
        return settings.LOG_LEVEL.upper()
    return "DEBUG" if settings.DEBUG else "INFO"


def setup_logging(settings: Optional[Settings] = None) -> None:
    settings = settings or get_settings()
    level = resolve_log_level(settings)

    loggers = {
        name: {"handlers": ["console"], "level": library_level, "propagate": False}
        for name, library_level in LIBRARY_LEVELS.items()
    }
    loggers["responses_gateway"] = {"handlers": ["console"], "level": level, "propagate": False}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"gateway": {"format": LOG_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "gateway",
                    "stream": "ext://sys.stdout",
                }
            },
            "root": {"handlers": ["console"], "level": level},
            "loggers": loggers,
        }
    )
