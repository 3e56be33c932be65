"""Structured JSON logging configuration.

Configures Python stdlib logging to emit JSON with GCP-compatible field names
and masks email addresses before anything reaches stdout.

Usage:
    from membership_bot.logging_config import configure_logging
    configure_logging()
"""

import logging
import logging.config

from membership_bot.emails import mask_emails


class EmailMaskingFilter(logging.Filter):
    """Rewrite the rendered message so email local parts are masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = mask_emails(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


LOGGING_CONFIG: dict = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "mask_emails": {
            "()": "membership_bot.logging_config.EmailMaskingFilter",
        },
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(levelname)s %(name)s %(funcName)s %(message)s",
            "rename_fields": {
                "levelname": "severity",
                "asctime": "timestamp",
                "name": "logger",
            },
            "static_fields": {
                "service": "membership-bot",
            },
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["mask_emails"],
            "stream": "ext://sys.stdout",
        },
    },
    "root": {
        "level": "INFO",
        "handlers": ["console"],
    },
}


def configure_logging(level: str = "INFO") -> None:
    """Apply structured JSON logging configuration.

    Call once at application startup (in the FastAPI lifespan). All subsequent
    ``logging.getLogger()`` calls emit JSON to stdout with a ``severity`` field
    mapped from Python's ``levelname``.
    """
    config = {**LOGGING_CONFIG, "root": {**LOGGING_CONFIG["root"], "level": level.upper()}}
    logging.config.dictConfig(config)
