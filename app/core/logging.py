import logging
import logging.config
from contextvars import ContextVar
from pathlib import Path
from typing import Any, Dict
from app.core.config import settings

# Set by RequestLoggingMiddleware for the lifetime of one request.
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(message)s"


class RequestIdFilter(logging.Filter):
    """Stamp every record with the id of the request that produced it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


def _rotating_handler(filename: str, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filters": ["request_id"],
        "filename": str(Path(settings.LOG_DIR) / filename),
        "maxBytes": settings.LOG_MAX_BYTES,
        "backupCount": settings.LOG_BACKUP_COUNT,
    }


def build_logging_config(level: str = None) -> Dict[str, Any]:
    level = (level or settings.LOG_LEVEL).upper()
    all_handlers = ["console", "file", "error_file"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "request_id": {"()": RequestIdFilter},
        },
        "formatters": {
            "detailed": {"format": LOG_FORMAT},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed",
                "filters": ["request_id"],
                "stream": "ext://sys.stdout",
            },
            "file": _rotating_handler("app.log", level),
            "error_file": _rotating_handler("error.log", "ERROR"),
        },
        "root": {"level": level, "handlers": all_handlers},
        "loggers": {
            "app": {"level": level, "handlers": all_handlers, "propagate": False},
            # lock and conflict decisions are logged at debug level
            "app.services.course_progress": {"level": "DEBUG", "handlers": all_handlers, "propagate": False},
            "apscheduler": {"level": "WARNING", "handlers": ["console", "file"], "propagate": False},
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }


def configure_logging(level: str = None):
    Path(settings.LOG_DIR).mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config(level))
