import sys
from logging.config import dictConfig

from app.core.config import settings

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
ACCESS_FORMAT = (
    "%(asctime)s | ACCESS | %(request_id)s | %(client_addr)s | "
    "%(method)s %(path)s | %(status_code)s | %(process_time_ms)sms"
)


def setup_logging():
    """
    Root logger at LOG_LEVEL on stdout, plus the `access` logger written
    by the request logging middleware. Uvicorn's own access log is muted
    since every request is already logged once.
    """
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {"format": DEFAULT_FORMAT},
                "access": {"format": ACCESS_FORMAT},
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
                "access_console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "access",
                },
            },
            "loggers": {
                "access": {"handlers": ["access_console"], "level": "INFO", "propagate": False},
                "uvicorn.access": {"level": "WARNING"},
                "apscheduler": {"level": "WARNING"},
            },
            "root": {"level": settings.LOG_LEVEL, "handlers": ["console"]},
        }
    )
