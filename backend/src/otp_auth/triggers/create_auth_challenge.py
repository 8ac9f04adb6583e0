"""Cognito Create Auth Challenge trigger.

Issues a one-time code and emails it. A retry inside the same session
re-presents the live code instead of sending another. The code never
leaves the store: public parameters carry only a masked email and a
user-facing message, private parameters only identifiers.

SECURITY NOTES:
- Email addresses are masked in logs and public challenge parameters
- Never log or return OTP codes or their hashes
"""

from __future__ import annotations

from typing import Any
from typing import Optional

from otp_auth import bootstrap
from otp_auth.challenges.create import ChallengeIssuer
from otp_auth.challenges.create import IssuedChallenge
from otp_auth.config import CUSTOM_CHALLENGE
from otp_auth.config import METADATA_DISPATCH_FAILED
from otp_auth.config import METADATA_ERROR
from otp_auth.config import METADATA_RATE_LIMITED
from otp_auth.config import METADATA_SENT
from otp_auth.events import CreateRequest
from otp_auth.exceptions import GENERIC_FAILURE_MESSAGE
from otp_auth.exceptions import INCORRECT_CODE_MESSAGE
from otp_auth.exceptions import NEW_CODE_MESSAGE
from otp_auth.exceptions import AppError
from otp_auth.exceptions import RateLimitError
from otp_auth.triggers.schemas import CreateChallengeResponseSchema
from otp_auth.triggers.schemas import PrivateChallengeParametersSchema
from otp_auth.triggers.schemas import PublicChallengeParametersSchema
from otp_auth.utils.deadline import Deadline
from otp_auth.utils.logging import clear_request_context
from otp_auth.utils.logging import configure_logging
from otp_auth.utils.logging import get_logger
from otp_auth.utils.logging import log_trigger_event
from otp_auth.utils.logging import mask_email
from otp_auth.utils.logging import set_request_context

configure_logging()
logger = get_logger(__name__)

CHALLENGE_TYPE = "OTP_EMAIL"


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Create a custom authentication challenge."""
    set_request_context(
        getattr(context, "aws_request_id", None), event.get("triggerSource")
    )
    try:
        try:
            config = bootstrap.get_config()
            issuer = bootstrap.get_issuer()
        except AppError as exc:
            logger.error("Invalid configuration", extra={"error_code": exc.code})
            return _error(event, exc)
        deadline = Deadline.for_invocation(config.handler_timeout_seconds, context)
        return handle_create_challenge(event, issuer, deadline)
    finally:
        clear_request_context()


def handle_create_challenge(
    event: dict[str, Any],
    issuer: ChallengeIssuer,
    deadline: Optional[Deadline] = None,
) -> dict[str, Any]:
    log_trigger_event(logger, event)
    try:
        request = CreateRequest.from_event(event)
        if request.challenge_name != CUSTOM_CHALLENGE:
            return event
        if request.resend:
            issued = issuer.resend(request.email, deadline)
        else:
            issued = issuer.issue(request, deadline)
    except RateLimitError as exc:
        return _rate_limited(event, exc)
    except AppError as exc:
        logger.error(
            "Failed to create auth challenge",
            extra={"error_code": exc.code, "detail": exc.detail or exc.message},
        )
        return _error(event, exc)
    except Exception:
        logger.exception("Unexpected error creating auth challenge")
        return _error(event)
    return _issued(event, issued)


def _issued(event: dict[str, Any], issued: IssuedChallenge) -> dict[str, Any]:
    if issued.reused:
        message = INCORRECT_CODE_MESSAGE
    elif issued.dispatched:
        message = NEW_CODE_MESSAGE
    else:
        message = GENERIC_FAILURE_MESSAGE
    return CreateChallengeResponseSchema(
        public_challenge_parameters=PublicChallengeParametersSchema(
            challenge_type=CHALLENGE_TYPE,
            email=mask_email(issued.email),
            message=message,
        ),
        private_challenge_parameters=PrivateChallengeParametersSchema(
            challenge_id=issued.challenge_id,
            user_id=issued.user_id,
            flow=issued.flow.value,
        ),
        challenge_metadata=METADATA_SENT if issued.dispatched else METADATA_DISPATCH_FAILED,
    ).apply(event)


def _rate_limited(event: dict[str, Any], exc: RateLimitError) -> dict[str, Any]:
    return CreateChallengeResponseSchema(
        public_challenge_parameters=PublicChallengeParametersSchema(
            challenge_type=CHALLENGE_TYPE,
            message=exc.user_message,
            retry_after=str(exc.retry_after_seconds),
        ),
        challenge_metadata=METADATA_RATE_LIMITED,
    ).apply(event)


def _error(event: dict[str, Any], exc: Optional[AppError] = None) -> dict[str, Any]:
    return CreateChallengeResponseSchema(
        public_challenge_parameters=PublicChallengeParametersSchema(
            challenge_type=CHALLENGE_TYPE,
            message=exc.user_message if exc is not None else GENERIC_FAILURE_MESSAGE,
        ),
        challenge_metadata=METADATA_ERROR,
    ).apply(event)
