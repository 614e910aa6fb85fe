"""
Structured JSON logging for SkillSync.
Every record carries a timestamp; user_id, action and major (finance, law,
biomed) are added whenever the caller knows them.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional
from datetime import datetime, timezone

from skillsync.shared.config import settings

_CONTEXT_FIELDS = ("user_id", "action", "major")

_RESERVED_ATTRS = {
    "name", "msg", "args", "created", "filename", "funcName", "levelname",
    "levelno", "lineno", "module", "msecs", "message", "pathname", "process",
    "processName", "relativeCreated", "thread", "threadName", "exc_info",
    "exc_text", "stack_info", "taskName", *_CONTEXT_FIELDS,
}


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in _CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        # Badge lists and counters stay JSON; anything else is stringified
        return json.dumps(log_data, default=str, ensure_ascii=False)


def setup_logging(
    log_level: Optional[str] = None,
    log_file: Optional[Path] = None
):
    """
    Setup structured logging for SkillSync.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional file path for file logging
    """
    log_level = log_level or settings.log_level
    log_file = log_file or settings.log_file

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

    formatter = StructuredFormatter()

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name."""
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    major: Optional[str] = None,
    **kwargs
):
    """
    Log with structured context.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        message: Log message
        user_id: Optional user identifier
        action: Optional action name (e.g. "hint", "check_answer")
        major: Optional major the request belongs to
        **kwargs: Additional structured fields
    """
    extra = {}
    if user_id:
        extra["user_id"] = user_id
    if action:
        extra["action"] = action
    if major:
        extra["major"] = major
    extra.update(kwargs)

    logger.log(level, message, extra=extra)


# Initialize logging on import
setup_logging()
