"""Logging helpers for unified-airquality."""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any, Optional

# =============================================================================
# Structured Logging Helpers
# =============================================================================


class StructuredLoggerAdapter(logging.LoggerAdapter):
    """
    Logger adapter that supports structured logging with extra fields.

    Usage:
        logger = get_structured_logger(__name__)
        logger.info("Polled source", source_id="outdoor", keys=3)
        logger.error("Poll failed", source_id="city", error="timeout")
    """

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> tuple[str, MutableMapping[str, Any]]:
        """Process log message and extract extra fields."""
        standard_kwargs = {"exc_info", "stack_info", "stacklevel", "extra"}
        extra = kwargs.pop("extra", {})

        # Move non-standard kwargs to extra
        for key in list(kwargs.keys()):
            if key not in standard_kwargs:
                extra[key] = kwargs.pop(key)

        if self.extra:
            extra = {**self.extra, **extra}

        kwargs["extra"] = extra
        return msg, kwargs


def get_structured_logger(name: str, **default_extra: Any) -> StructuredLoggerAdapter:
    """
    Get a structured logger that supports extra keyword arguments.

    Args:
        name: Logger name (usually __name__)
        **default_extra: Default extra fields to include in all logs

    Returns:
        A StructuredLoggerAdapter instance

    Example:
        logger = get_structured_logger(__name__, component="waqi")
        logger.info("Fetched feed", city="berlin", status="ok")
    """
    base_logger = logging.getLogger(name)
    return StructuredLoggerAdapter(base_logger, default_extra)


# Attributes every LogRecord carries; anything else came in through ``extra``
STANDARD_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "asctime",
    "taskName",
}

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def record_extra(record: logging.LogRecord) -> dict[str, Any]:
    """Extract the extra fields that were added to a log record."""
    return {
        key: value for key, value in record.__dict__.items() if key not in STANDARD_RECORD_ATTRS
    }


class StructuredFormatter(logging.Formatter):
    """
    Formatter that appends a record's extra fields as ``key=value`` pairs.

    "null value for no2" logged with ``source_id="city"`` becomes
    "... - null value for no2 [source_id=city]".
    """

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extra = record_extra(record)
        if not extra:
            return message
        fields = " ".join(f"{key}={value}" for key, value in sorted(extra.items()))
        first_line, sep, rest = message.partition("\n")
        return f"{first_line} [{fields}]{sep}{rest}"


def setup_logging(level: str, log_file: Optional[str]) -> None:
    """Configure logging handlers"""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    # Add file handler if log file is specified and writable
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file))
        except PermissionError:
            print(
                f"Warning: Cannot write to {log_file}, logging to stdout only",
                file=sys.stderr,
            )

    formatter = StructuredFormatter(LOG_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)
