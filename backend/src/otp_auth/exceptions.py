"""Custom exception classes for the OTP challenge flow.

Every error carries a stable ``code`` that identifies the failure in
logs and challenge metadata, a status code mirroring the HTTP semantics
used across the backend, and a ``user_message`` that is safe to show to
the client. Internal detail stays in ``message`` / ``detail`` and is only
ever logged server-side.
"""

from __future__ import annotations

from typing import Any
from typing import Optional

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."
NEW_CODE_MESSAGE = "Check your email for a new code."
INCORRECT_CODE_MESSAGE = "Incorrect code, try again."
TOO_MANY_ATTEMPTS_MESSAGE = "Too many attempts, try later."


class AppError(Exception):
    """Base exception for application errors.

    Attributes:
        message: Internal, human-readable error message.
        status_code: HTTP-like status code (default 500).
        detail: Optional additional context.
        code: Stable machine-readable error code.
        user_message: Message safe to expose to the client.
    """

    code = "InternalError"
    user_message = GENERIC_FAILURE_MESSAGE

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.detail = detail

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a client-safe payload."""
        return {"error": self.code, "message": self.user_message}


class InvalidInputError(AppError):
    """Raised when request input (e.g. the email address) is malformed."""

    code = "InvalidInput"

    def __init__(self, message: str, field: Optional[str] = None):
        detail = f"Field: {field}" if field else None
        super().__init__(message, status_code=400, detail=detail)
        self.field = field


class InvalidFormatError(InvalidInputError):
    """Raised when a submitted code is not exactly six digits."""

    code = "InvalidFormat"
    user_message = INCORRECT_CODE_MESSAGE

    def __init__(self, message: str = "Code must be six digits"):
        super().__init__(message, field="challengeAnswer")


class RateLimitError(AppError):
    """Raised when too many codes were requested for one email.

    Attributes:
        retry_after_seconds: Seconds until a new request will be allowed.
    """

    code = "RateLimited"
    user_message = TOO_MANY_ATTEMPTS_MESSAGE

    def __init__(
        self,
        retry_after_seconds: int,
        message: str = "Rate limit exceeded",
    ):
        super().__init__(message, status_code=429)
        self.retry_after_seconds = retry_after_seconds

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["retry_after"] = self.retry_after_seconds
        return result


class MaxAttemptsExceededError(AppError):
    """Raised when the session used up its challenge attempts."""

    code = "MaxAttemptsExceeded"
    user_message = TOO_MANY_ATTEMPTS_MESSAGE

    def __init__(self, attempts: int):
        super().__init__(
            f"Maximum challenge attempts reached: {attempts}",
            status_code=429,
        )
        self.attempts = attempts


class NoChallengePendingError(AppError):
    """Raised when an operation needs a live code but none exists."""

    code = "NoChallengePending"
    user_message = NEW_CODE_MESSAGE

    def __init__(self, message: str = "No challenge pending"):
        super().__init__(message, status_code=409)


class StoreUnavailableError(AppError):
    """Raised when the key-value store cannot be reached or fails."""

    code = "StoreUnavailable"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, status_code=503, detail=detail)


class StoreDataError(StoreUnavailableError):
    """Raised when a stored item cannot be decoded into a record."""

    def __init__(self, table: str, detail: Optional[str] = None):
        super().__init__(f"Malformed item in table {table}", detail=detail)
        self.table = table


class DispatchError(AppError):
    """Raised when the email collaborator fails to send a message."""

    code = "DispatchFailed"

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message, status_code=502, detail=detail)


class ConfigurationError(AppError):
    """Raised when required configuration is missing or invalid."""

    code = "ConfigurationError"

    def __init__(self, config_name: str, reason: str = "missing"):
        super().__init__(
            f"Invalid configuration ({reason}): {config_name}",
            status_code=500,
        )
        self.config_name = config_name
        self.reason = reason
