"""
Logging configuration for the Poker Planning API.

Load balancer probes hit the health and readiness endpoints every few seconds;
their access lines are dropped so room activity stays readable.
"""

import logging
from typing import Any, Dict

PROBE_PATHS = ("/api/health", "/api/ready")

LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
ACCESS_FORMAT = "%(asctime)s access %(message)s"


class ProbeFilter(logging.Filter):
    """Drop uvicorn access lines for GET requests to probe endpoints."""

    def __init__(self, paths=PROBE_PATHS):
        super().__init__()
        self.paths = tuple(paths)

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name != "uvicorn.access":
            return True
        # uvicorn access args: (client, method, path, http_version, status)
        args = record.args if isinstance(record.args, tuple) else ()
        if len(args) >= 3:
            method, path = args[1], str(args[2]).split("?", 1)[0]
            return not (method == "GET" and path in self.paths)
        message = record.getMessage()
        return not ("GET" in message and any(f"{p} " in message for p in self.paths))


def get_logging_config(level: str = "INFO") -> Dict[str, Any]:
    """Build the dictConfig used by the app and by uvicorn."""
    level = level.upper()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "probes": {"()": ProbeFilter},
        },
        "formatters": {
            "service": {"format": LOG_FORMAT, "datefmt": "%Y-%m-%dT%H:%M:%S"},
            "access": {"format": ACCESS_FORMAT, "datefmt": "%Y-%m-%dT%H:%M:%S"},
        },
        "handlers": {
            "service": {
                "class": "logging.StreamHandler",
                "formatter": "service",
                "stream": "ext://sys.stdout",
            },
            "access": {
                "class": "logging.StreamHandler",
                "formatter": "access",
                "stream": "ext://sys.stdout",
                "filters": ["probes"],
            },
        },
        "loggers": {
            "uvicorn": {"handlers": ["service"], "level": "INFO", "propagate": False},
            "uvicorn.error": {"handlers": ["service"], "level": "INFO", "propagate": False},
            "uvicorn.access": {"handlers": ["access"], "level": "INFO", "propagate": False},
            "poker_planning": {"handlers": ["service"], "level": level, "propagate": False},
        },
        "root": {"level": "WARNING", "handlers": ["service"]},
    }
