"""JSON logs for the quiz service.

Every record carries the service name and environment so the reconciliation
thread and request logs can be told apart once shipped. Context such as
``quiz_id`` or ``request_id`` is passed through ``extra=`` and lands as
top-level keys.
"""

import logging
import sys

from pythonjsonlogger import jsonlogger

from lms_quiz.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Libraries that log every request or statement at INFO
QUIET_LOGGERS = {"uvicorn.access": logging.WARNING, "sqlalchemy.engine": logging.WARNING}


def build_formatter() -> jsonlogger.JsonFormatter:
    return jsonlogger.JsonFormatter(
        LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
        rename_fields={"asctime": "timestamp", "levelname": "level", "name": "logger"},
        static_fields={"service": settings.PROJECT_NAME, "env": settings.ENV},
    )


def setup_logging() -> None:
    """Send all logging to stdout as JSON. Safe to call more than once."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.LOG_LEVEL.upper())

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
