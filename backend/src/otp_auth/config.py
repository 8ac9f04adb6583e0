"""Process-wide configuration for the custom auth triggers.

Configuration is read from environment variables once, at cold start,
and passed explicitly into the services that need it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping
from typing import Optional

from otp_auth.exceptions import ConfigurationError

CUSTOM_CHALLENGE = "CUSTOM_CHALLENGE"
OTP_LENGTH = 6

# challengeMetadata written by the create trigger
METADATA_SENT = "OTP_EMAIL_SENT"
METADATA_DISPATCH_FAILED = "OTP_EMAIL_DISPATCH_FAILED"
METADATA_RATE_LIMITED = "RATE_LIMITED"
METADATA_ERROR = "ERROR"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AuthConfig:
    """Settings shared by the define/create/verify triggers."""

    otp_table_name: str
    rate_limit_table_name: str
    users_table_name: str
    from_address: str
    users_email_index: str = "email-index"
    otp_ttl_seconds: int = 300
    otp_cleanup_grace_seconds: int = 3600
    rate_limit_window_seconds: int = 900
    rate_limit_threshold: int = 3
    max_challenge_attempts: int = 3
    handler_timeout_seconds: int = 30
    login_template: str = "otp-login"
    registration_template: str = "otp-registration"
    environment: str = ""
    confirm_cognito_users: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AuthConfig":
        """Build the configuration from environment variables.

        Raises:
            ConfigurationError: If a required variable is missing or a
                numeric variable is not a positive integer.
        """
        env = os.environ if environ is None else environ
        return cls(
            otp_table_name=_require(env, "OTP_TABLE_NAME"),
            rate_limit_table_name=_require(env, "RATE_LIMIT_TABLE_NAME"),
            users_table_name=_require(env, "USERS_TABLE_NAME"),
            from_address=_require(env, "SES_FROM_ADDRESS"),
            users_email_index=env.get("USERS_EMAIL_INDEX") or "email-index",
            otp_ttl_seconds=_positive_int(env, "OTP_TTL_SECONDS", 300),
            otp_cleanup_grace_seconds=_positive_int(
                env, "OTP_CLEANUP_GRACE_SECONDS", 3600
            ),
            rate_limit_window_seconds=_positive_int(
                env, "RATE_LIMIT_WINDOW_SECONDS", 900
            ),
            rate_limit_threshold=_positive_int(env, "RATE_LIMIT_THRESHOLD", 3),
            max_challenge_attempts=_positive_int(env, "MAX_CHALLENGE_ATTEMPTS", 3),
            handler_timeout_seconds=_positive_int(env, "HANDLER_TIMEOUT_SECONDS", 30),
            login_template=env.get("EMAIL_TEMPLATE_LOGIN") or "otp-login",
            registration_template=(
                env.get("EMAIL_TEMPLATE_REGISTRATION") or "otp-registration"
            ),
            environment=(env.get("ENVIRONMENT") or "").strip(),
            confirm_cognito_users=_flag(env, "CONFIRM_COGNITO_USERS", True),
        )

    def template_name(self, base_name: str) -> str:
        """Return the deployed template name for the current environment."""
        if not self.environment:
            return base_name
        return f"{base_name}-{self.environment}"


def _require(env: Mapping[str, str], name: str) -> str:
    value = (env.get(name) or "").strip()
    if not value:
        raise ConfigurationError(name)
    return value


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(name, reason="not an integer") from exc
    if value <= 0:
        raise ConfigurationError(name, reason="must be positive")
    return value


def _flag(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = (env.get(name) or "").strip().lower()
    if not raw:
        return default
    if raw in _TRUE_VALUES:
        return True
    if raw in _FALSE_VALUES:
        return False
    raise ConfigurationError(name, reason="not a boolean")
