"""Logging for migration runs: text or JSON output with account context."""
from __future__ import annotations

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from core.utils import mask_secret


TEXT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(context)s%(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Record attributes that identify what a log line is about
CONTEXT_FIELDS = ("account_sid", "service_sid", "phone_number", "campaign_sid")

# Loggers that report every HTTP exchange at INFO
NOISY_LOGGERS = ("twilio.http_client", "urllib3")


def _context_of(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class ContextTextFormatter(logging.Formatter):
    """Text formatter that prefixes messages with ``[AC... MG...]`` context."""

    def format(self, record: logging.LogRecord) -> str:
        context = _context_of(record)
        record.context = f"[{' '.join(str(v) for v in context.values())}] " if context else ""
        return super().format(record)


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    One object per line; account, service, number and campaign identifiers
    are top-level keys so a run can be filtered per sub-account.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON."""
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }
        log_data.update(_context_of(record))

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class SecretRedactingFilter(logging.Filter):
    """Replace known auth tokens in rendered messages with their masked form."""

    def __init__(self, secrets: Iterable[Optional[str]] = ()) -> None:
        super().__init__()
        self._secrets = {s for s in secrets if s}
        self._lock = threading.Lock()

    def add_secret(self, secret: Optional[str]) -> None:
        if secret:
            with self._lock:
                self._secrets.add(secret)

    def filter(self, record: logging.LogRecord) -> bool:
        with self._lock:
            secrets = tuple(self._secrets)
        if not secrets:
            return True
        message = record.getMessage()
        redacted = message
        for secret in secrets:
            redacted = redacted.replace(secret, mask_secret(secret))
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


# Shared by every handler installed by setup_logging
REDACTOR = SecretRedactingFilter()


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that attaches account context to every record.

    Usage:
        logger = get_context_logger(__name__, account_sid="AC123")
        logger.info("Processing sub-account")  # Tagged with account_sid
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple[str, Dict[str, Any]]:
        extra = kwargs.get("extra", {})
        extra.update(self.extra)
        kwargs["extra"] = extra
        return msg, kwargs


def _formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JSONFormatter()
    return ContextTextFormatter(TEXT_LOG_FORMAT, DATE_FORMAT)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_format: bool = False,
    secrets: Iterable[Optional[str]] = (),
) -> None:
    """
    Configure logging for a migration run.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file, written alongside the console.
        json_format: If True, use JSON structured logging.
        secrets: Credentials to mask wherever they appear in messages.
    """
    for secret in secrets:
        REDACTOR.add_secret(secret)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(_formatter(json_format))
        handler.addFilter(REDACTOR)

    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True,  # Overwrite any existing configuration
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def get_context_logger(name: str, **context: Any) -> ContextLogger:
    """
    Get a logger that tags every record with the given context.

    Example:
        logger = get_context_logger(__name__, account_sid="AC123", service_sid="MG456")
        logger.info("Evaluating service")  # "[AC123 MG456] Evaluating service"
    """
    return ContextLogger(logging.getLogger(name), context)


__all__ = [
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "JSONFormatter",
    "ContextTextFormatter",
    "SecretRedactingFilter",
    "ContextLogger",
    "REDACTOR",
]
