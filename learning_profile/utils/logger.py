"""
Structured logging utility
"""

import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from learning_profile.config import settings


# Extra record attributes copied into JSON log lines when present
EXTRA_FIELDS = ("request_id", "profile_id", "classroom_id", "duration_ms", "status_code", "error_code")


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for field in EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        return json.dumps(log_data, default=str)


def setup_logger(name: str = __name__, level: Optional[int] = None) -> logging.Logger:
    """
    Setup structured logger

    Args:
        name: Logger name
        level: Log level (defaults to settings.DEBUG)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if level is None:
        level = logging.DEBUG if settings.DEBUG else logging.INFO

    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    if settings.DEBUG:
        # Pretty format for development
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = JSONFormatter()

    handler.setFormatter(formatter)
    logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger("learning_profile")
