"""
config/logging_config.py
Process-wide logging setup. Modules log through logging.getLogger(__name__).
"""
import logging.config
from typing import Any, Dict

from config.settings import settings


def get_logging_config(level: str = None) -> Dict[str, Any]:
    """Build the dictConfig mapping used by the service."""
    level = (level or settings.LOG_LEVEL).upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
            },
        },
        "handlers": {
            "default": {
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "executor": {"handlers": ["default"], "level": level, "propagate": False},
            "jenkins_client": {"handlers": ["default"], "level": level, "propagate": False},
            # python-jenkins is chatty at DEBUG
            "jenkins": {"handlers": ["default"], "level": "WARNING", "propagate": False},
            "aiohttp.access": {"handlers": ["default"], "level": level, "propagate": False},
        },
        "root": {"handlers": ["default"], "level": level},
    }


def setup_logging(level: str = None) -> None:
    logging.config.dictConfig(get_logging_config(level))
