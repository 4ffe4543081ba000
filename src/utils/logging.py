"""Structured logging utilities with correlation IDs, timing, and masking of contact handles."""

import logging
import time
import uuid
import re
import hashlib
from typing import Any, Optional, Dict, Union
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone

from src.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

_EMAIL_PATTERN = re.compile(r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}', re.IGNORECASE)


def generate_correlation_id(prefix: str = "req") -> str:
    """Generate a unique correlation ID for tracing one command or job run."""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Context manager for correlation ID propagation."""
    if correlation_id is None:
        correlation_id = generate_correlation_id()

    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)


def mask_email(email: Optional[str]) -> Optional[str]:
    """Mask an email address, keeping the first character and the domain."""
    if not email or not LoggingConfig.LOG_MASK_SENSITIVE:
        return email
    local, _, domain = email.partition("@")
    if not domain:
        return "[REDACTED_EMAIL]"
    return f"{local[:1]}***@{domain}"


def mask_sensitive_data(text: str) -> str:
    """Mask email addresses and Slack tokens in free text."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text

    text = _EMAIL_PATTERN.sub('[REDACTED_EMAIL]', text)
    text = re.sub(
        r'xox[baprs]-[A-Za-z0-9-]+',
        '[REDACTED_SLACK_TOKEN]',
        text,
        flags=re.IGNORECASE
    )
    return text


def mask_user_id(user_id: str) -> str:
    """Replace a Slack user ID with a stable hash, keeping the type prefix (U, W or B)."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not user_id:
        return user_id

    hashed = hashlib.sha256(user_id.encode()).hexdigest()[:8]
    return f"{user_id[:1]}...{hashed}"


class StructuredLogger:
    """Logger wrapper taking structured fields as keyword arguments."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _get_extra(self, **kwargs: Any) -> Dict[str, Any]:
        extra = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id

        extra.update(kwargs)
        return extra

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._get_extra(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._get_extra(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._get_extra(**kwargs))

    def error(self, message: str, exc_info: Union[bool, BaseException] = False, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._get_extra(**kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log with the active exception; the top-level reporting hook."""
        self.logger.exception(message, extra=self._get_extra(**kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    """Get a structured logger instance."""
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Context manager for timing remote calls."""
    if logger is None:
        logger = get_structured_logger(__name__)

    start_time = time.monotonic()
    logger.debug(f"Starting {operation_name}", operation=operation_name, **context)

    try:
        yield
    finally:
        elapsed_ms = (time.monotonic() - start_time) * 1000
        logger.debug(
            f"Completed {operation_name}",
            operation=operation_name,
            processing_time_ms=round(elapsed_ms, 2),
            **context
        )

        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                f"Slow operation detected: {operation_name}",
                operation=operation_name,
                processing_time_ms=round(elapsed_ms, 2),
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                **context
            )


def setup_logging() -> logging.Logger:
    """Set up structured logging and return the package logger."""
    LoggingConfig.setup_logging()
    return get_logger("src")
