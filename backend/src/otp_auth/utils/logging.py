"""Structured logging utilities for the Cognito trigger Lambdas.

This module provides JSON-formatted logging with invocation context,
suitable for CloudWatch Logs Insights queries and metric filters.

SECURITY NOTES:
- Use mask_email() when logging email addresses to comply with privacy regulations
- Use mask_pii() for other personally identifiable information
- Never log OTP codes, their hashes or salts
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Mapping
from typing import MutableMapping
from typing import Optional


def mask_email(email: str) -> str:
    """Mask an email address for safe logging.

    Args:
        email: The email address to mask.

    Returns:
        A masked version like "jo***@***.com".

    Examples:
        >>> mask_email("john.doe@example.com")
        'jo***@***.com'
        >>> mask_email("a@b.co")
        'a***@***.co'
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)
    domain_parts = domain.rsplit(".", 1)

    visible_local = local[:2] if len(local) > 2 else local[:1]
    tld = domain_parts[-1] if len(domain_parts) > 1 else ""

    return f"{visible_local}***@***.{tld}" if tld else f"{visible_local}***@***"


def mask_pii(value: str, visible_chars: int = 4) -> str:
    """Mask a PII value, keeping only the first few characters."""
    if not value:
        return "***"
    if len(value) <= visible_chars:
        return value[0] + "***"
    return value[:visible_chars] + "***"


def hash_for_correlation(value: str) -> str:
    """Generate a short hash for log correlation without exposing PII.

    Args:
        value: The value to hash (e.g., email address).

    Returns:
        A 12 character hex digest.
    """
    return hashlib.sha256(value.encode()).hexdigest()[:12]


request_id: ContextVar[str] = ContextVar("request_id", default="")
trigger_source: ContextVar[str] = ContextVar("trigger_source", default="")


class StructuredLogFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        req_id = request_id.get()
        if req_id:
            log_data["request_id"] = req_id

        source = trigger_source.get()
        if source:
            log_data["trigger_source"] = source

        if record.levelno >= logging.WARNING:
            log_data["source"] = {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        context = getattr(record, "context", None)
        if isinstance(context, dict) and context:
            log_data["extra"] = context

        return json.dumps(log_data, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that nests bound and per-call extras under ``context``."""

    def process(
        self,
        msg: str,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        context: dict[str, Any] = dict(self.extra or {})
        context.update(kwargs.get("extra") or {})
        kwargs["extra"] = {"context": context}
        return msg, kwargs

    def bind(self, **extra: Any) -> "ContextLogger":
        """Return a child adapter that always includes ``extra``."""
        merged = dict(self.extra or {})
        merged.update(extra)
        return ContextLogger(self.logger, merged)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structured logging for Lambda execution.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to
               LOG_LEVEL environment variable or INFO.
    """
    log_level: str = level or os.getenv("LOG_LEVEL") or "INFO"

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredLogFormatter())
    root_logger.addHandler(handler)

    # Reduce noise from libraries
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> ContextLogger:
    """Get a context-aware logger.

    Args:
        name: Logger name (typically __name__).
        **extra: Additional context to include in all log messages.
    """
    return ContextLogger(logging.getLogger(name), extra)


def set_request_context(
    req_id: Optional[str] = None,
    source: Optional[str] = None,
) -> None:
    """Set invocation context for logging.

    Call this at the start of each Lambda invocation.

    Args:
        req_id: AWS request ID from the Lambda context.
        source: Cognito ``triggerSource`` of the event.
    """
    if req_id:
        request_id.set(req_id)
    if source:
        trigger_source.set(source)


def clear_request_context() -> None:
    """Clear invocation context after the Lambda invocation."""
    request_id.set("")
    trigger_source.set("")


def log_trigger_event(logger: ContextLogger, event: Mapping[str, Any]) -> None:
    """Log the non-sensitive envelope of a Cognito trigger event at DEBUG."""
    request = event.get("request") or {}
    logger.debug(
        "Cognito trigger received",
        extra={
            "trigger_source": event.get("triggerSource"),
            "user_pool_id": event.get("userPoolId"),
            "session_length": len(request.get("session") or []),
            "has_answer": bool(request.get("challengeAnswer")),
        },
    )
