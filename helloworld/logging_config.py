"""
Logging configuration for the Hello World signaling service.

The same dict is applied at startup and handed to uvicorn as ``log_config``,
so application and server records share one format. Access lines for quiet
paths such as ``/health`` are dropped.
"""

import logging
import logging.config
from typing import Any, Dict, Iterable, Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ACCESS_LOGGER = "uvicorn.access"
QUIET_ACCESS_PATHS = ("/health",)

# Loggers that write through the default handler
SERVICE_LOGGERS = ("uvicorn", "uvicorn.error", "helloworld")


class HealthCheckFilter(logging.Filter):
    """Drop uvicorn access records for GET requests to quiet paths."""

    def __init__(self, paths: Iterable[str] = QUIET_ACCESS_PATHS):
        super().__init__()
        self.paths = tuple(paths)

    def _is_quiet(self, method: str, path: str) -> bool:
        return method == "GET" and path.split("?", 1)[0] in self.paths

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != ACCESS_LOGGER:
            return True

        # uvicorn passes (client, method, path, http_version, status)
        if isinstance(record.args, tuple) and len(record.args) == 5:
            _, method, path, _, _ = record.args
            return not self._is_quiet(str(method), str(path))

        message = record.getMessage()
        return not ("GET" in message and any(path in message for path in self.paths))


def _stream_handler(formatter: str, filters: Optional[list] = None) -> Dict[str, Any]:
    handler = {
        "class": "logging.StreamHandler",
        "formatter": formatter,
        "stream": "ext://sys.stdout",
    }
    if filters:
        handler["filters"] = filters
    return handler


def get_logging_config(level: str = "INFO", quiet_paths: Iterable[str] = QUIET_ACCESS_PATHS) -> Dict[str, Any]:
    """
    Build the dictConfig for the service.

    Args:
        level: Level applied to the service, uvicorn and root loggers
        quiet_paths: Request paths whose GET access lines are suppressed

    Returns:
        Dict suitable for logging.config.dictConfig and uvicorn's log_config
    """
    level = level.upper()

    loggers = {
        name: {"handlers": ["default"], "level": level, "propagate": False}
        for name in SERVICE_LOGGERS
    }
    loggers[ACCESS_LOGGER] = {"handlers": ["access"], "level": level, "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "health_check_filter": {"()": HealthCheckFilter, "paths": tuple(quiet_paths)},
        },
        "formatters": {
            "default": {"format": LOG_FORMAT},
            "access": {"format": "%(message)s"},
        },
        "handlers": {
            "default": _stream_handler("default"),
            "access": _stream_handler("access", filters=["health_check_filter"]),
        },
        "loggers": loggers,
        "root": {"level": level, "handlers": ["default"]},
    }


def configure_logging(level: str = "INFO") -> None:
    """Apply the service logging configuration to the running process."""
    logging.config.dictConfig(get_logging_config(level))
