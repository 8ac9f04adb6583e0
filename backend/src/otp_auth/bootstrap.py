"""Process-level wiring of configuration, AWS clients and services.

Each Lambda container builds its configuration and services once, on
first use, and reuses them across invocations.
"""

from __future__ import annotations

from typing import Any
from typing import Optional

from otp_auth.challenges.create import ChallengeIssuer
from otp_auth.challenges.verify import ChallengeVerifier
from otp_auth.config import AuthConfig
from otp_auth.repositories.otp import OtpRepository
from otp_auth.repositories.rate_limit import RateLimitRepository
from otp_auth.repositories.user import UserRepository
from otp_auth.services.aws_clients import get_cognito_idp_client
from otp_auth.services.aws_clients import get_dynamodb_client
from otp_auth.services.aws_clients import get_ses_client
from otp_auth.services.email import EmailSender
from otp_auth.services.email import SesEmailSender
from otp_auth.services.identity import CognitoUserAdmin
from otp_auth.services.rate_limiter import RateLimiter
from otp_auth.services.store import DynamoDBStore
from otp_auth.services.store import KeyValueStore

_CACHE: dict[str, Any] = {}


def get_config() -> AuthConfig:
    """Return the process configuration, reading the environment once."""
    if "config" not in _CACHE:
        _CACHE["config"] = AuthConfig.from_env()
    return _CACHE["config"]


def get_issuer() -> ChallengeIssuer:
    if "issuer" not in _CACHE:
        _CACHE["issuer"] = build_issuer(get_config())
    return _CACHE["issuer"]


def get_verifier() -> ChallengeVerifier:
    if "verifier" not in _CACHE:
        _CACHE["verifier"] = build_verifier(get_config())
    return _CACHE["verifier"]


def reset() -> None:
    """Forget cached configuration and services (useful in tests)."""
    _CACHE.clear()


def build_store(config: AuthConfig) -> DynamoDBStore:
    return DynamoDBStore(
        get_dynamodb_client(timeout_seconds=config.handler_timeout_seconds)
    )


def build_user_admin(config: AuthConfig) -> CognitoUserAdmin:
    return CognitoUserAdmin(
        get_cognito_idp_client(timeout_seconds=config.handler_timeout_seconds)
    )


def build_issuer(
    config: AuthConfig,
    store: Optional[KeyValueStore] = None,
    email_sender: Optional[EmailSender] = None,
    user_admin: Optional[CognitoUserAdmin] = None,
    **kwargs: Any,
) -> ChallengeIssuer:
    """Assemble a ``ChallengeIssuer``; collaborators default to AWS-backed ones."""
    store = store if store is not None else build_store(config)
    if email_sender is None:
        email_sender = SesEmailSender(
            get_ses_client(timeout_seconds=config.handler_timeout_seconds),
            config.from_address,
        )
    if user_admin is None and config.confirm_cognito_users:
        user_admin = build_user_admin(config)
    return ChallengeIssuer(
        config=config,
        otp_repository=OtpRepository(store, config.otp_table_name),
        user_repository=UserRepository(
            store, config.users_table_name, config.users_email_index
        ),
        rate_limiter=RateLimiter(
            RateLimitRepository(store, config.rate_limit_table_name),
            threshold=config.rate_limit_threshold,
            window_seconds=config.rate_limit_window_seconds,
        ),
        email_sender=email_sender,
        user_admin=user_admin,
        **kwargs,
    )


def build_verifier(
    config: AuthConfig,
    store: Optional[KeyValueStore] = None,
    user_admin: Optional[CognitoUserAdmin] = None,
    **kwargs: Any,
) -> ChallengeVerifier:
    store = store if store is not None else build_store(config)
    if user_admin is None:
        user_admin = build_user_admin(config)
    return ChallengeVerifier(
        otp_repository=OtpRepository(store, config.otp_table_name),
        user_repository=UserRepository(
            store, config.users_table_name, config.users_email_index
        ),
        user_admin=user_admin,
        **kwargs,
    )
