"""
Structured Logging Configuration Module

Loan lifecycle events carry the loan, application, acting user and action
they concern. Both output formats render those fields; the JSON one also
stamps each event with the business date it happened on.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from .config import get_config
from .dates import business_date

# Record attributes set by log_action, in output order
CONTEXT_FIELDS = ("loan_id", "application_id", "user_id", "action", "extra")

TEXT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """Context fields present on a record, in CONTEXT_FIELDS order"""
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record"""

    def format(self, record):
        created = datetime.fromtimestamp(record.created, timezone.utc)
        log_entry = {
            "timestamp": created.isoformat(),
            "business_date": business_date(created).isoformat(),
            "level": record.levelname,
            "module": record.module if hasattr(record, 'module') else record.name,
            "logger": record.name,
            "message": record.getMessage(),
        }
        log_entry.update(record_context(record))
        log_entry = {k: v for k, v in log_entry.items() if v is not None}

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class ContextTextFormatter(logging.Formatter):
    """Plain text line followed by key=value context pairs"""

    def __init__(self, fmt: str = TEXT_FORMAT):
        super().__init__(fmt)

    def format(self, record):
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{name}={value}" for name, value in context.items())
        return f"{line} | {pairs}"


def setup_logging(level: str = "INFO", logger_name: str = "lending_core",
                  log_format: str = "json") -> logging.Logger:
    """
    Setup structured logging for the engine.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Name of the logger; engine modules log under "lending_core.*"
        log_format: "json" for JSONFormatter, "text" for ContextTextFormatter

    Returns:
        Configured logger instance
    """
    log_level = _resolve_level(level)
    logger = logging.getLogger(logger_name)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if log_format == "json" else ContextTextFormatter())

    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False

    return logger


def setup_logging_from_config() -> logging.Logger:
    """Setup logging using the global LendingConfig"""
    cfg = get_config()
    return setup_logging(level=cfg.log_level, log_format=cfg.log_format)


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level {level!r}")
    return value


def log_action(logger: logging.Logger, level: str, message: str,
               user_id: Optional[str] = None, action: Optional[str] = None,
               loan_id: Optional[str] = None, application_id: Optional[str] = None,
               extra: Optional[dict] = None):
    """
    Log a lifecycle action with structured data.

    Args:
        logger: Logger instance
        level: Log level (info, warning, error, etc.)
        message: Log message
        user_id: Opaque reference of the acting user
        action: Action being performed (e.g. "approve", "apply_payment")
        loan_id: Loan the action touches
        application_id: Application the action touches
        extra: Additional structured data
    """
    values = dict(loan_id=loan_id, application_id=application_id,
                  user_id=user_id, action=action, extra=extra)
    fields = {name: values[name] for name in CONTEXT_FIELDS if values[name]}
    logger.log(_resolve_level(level), message, extra=fields)
