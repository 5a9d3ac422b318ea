"""Logging setup for processes that run syncs (workers, scheduled jobs)."""

import logging.config
import os
from typing import Optional

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
        },
        "detailed": {
            "format": "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
        }
    },
    "handlers": {
        "default": {
            "level": "DEBUG",
            "formatter": "standard",
            "class": "logging.StreamHandler",
            "stream": "ext://sys.stdout"
        }
    },
    "loggers": {
        "sandbox_persist": {
            "handlers": ["default"],
            "level": "INFO",
            "propagate": False
        }
    }
}


def configure_logging(level: Optional[str] = None, detailed: bool = False) -> None:
    """Install the console handler for the sandbox_persist loggers.

    Level defaults to SANDBOX_PERSIST_LOG_LEVEL, then INFO.
    """
    config = {
        **LOGGING_CONFIG,
        "handlers": {name: dict(handler) for name, handler in LOGGING_CONFIG["handlers"].items()},
        "loggers": {name: dict(logger) for name, logger in LOGGING_CONFIG["loggers"].items()},
    }
    config["loggers"]["sandbox_persist"]["level"] = (
        level or os.getenv("SANDBOX_PERSIST_LOG_LEVEL", "INFO")
    ).upper()
    if detailed:
        config["handlers"]["default"]["formatter"] = "detailed"
    logging.config.dictConfig(config)
