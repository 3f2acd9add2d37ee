# logging_config.py
import json
import logging
import os
import re
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict

from talenthub.config import settings

EMAIL_PATTERN = re.compile(r"[\w.+-]+@[\w-]+\.[\w.-]+")


class SensitiveDataFilter(logging.Filter):
    """Filter to mask contact details and secrets in log records."""

    def __init__(self, sensitive_patterns=None):
        super().__init__()
        self.sensitive_patterns = sensitive_patterns or ["password", "token", "api_key", "secret"]

    def filter(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # leave a malformed record for the handler to report
            return True
        for pattern in self.sensitive_patterns:
            message = message.replace(pattern, "****REDACTED****")
        # Candidate e-mails end up in search terms; keep them out of the logs
        record.msg = EMAIL_PATTERN.sub("****@****", message)
        record.args = None
        return True


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }

        # Add extra fields if present
        if hasattr(record, "extra"):
            log_data.update(record.extra)

        return json.dumps(log_data, default=str)


def setup_logging(name: str, level: str = None) -> logging.Logger:
    """Set up logging configuration."""
    log_level = (level or os.getenv("LOG_LEVEL") or settings.log_level).upper()
    log_dir = os.getenv("LOG_DIR", settings.log_dir)

    os.makedirs(log_dir, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(log_level)

    # Remove existing handlers
    logger.handlers = []

    formatter = JSONFormatter()
    sensitive_filter = SensitiveDataFilter()

    log_file = os.path.join(log_dir, f"{name}.log")
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=10485760,  # 10MB
        backupCount=5,
    )
    file_handler.setFormatter(formatter)
    file_handler.addFilter(sensitive_filter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(sensitive_filter)
    logger.addHandler(console_handler)

    if log_level == "DEBUG":
        logger.debug("Debug logging enabled")

    return logger


def log_structured(logger, level, message, data=None, **kwargs):
    """Log a message with structured data."""
    if data is not None:
        if isinstance(data, (dict, list)):
            try:
                message = f"{message} {json.dumps(data, default=str)}"
            except (TypeError, ValueError):
                message = f"{message} {str(data)}"
        else:
            message = f"{message} {data}"

    if kwargs:
        message = f"{message} {json.dumps(kwargs, default=str)}"

    log_method = getattr(logger, level, None)
    if log_method is None:
        raise ValueError(f"Unknown log level: {level}")
    log_method(message)
