"""Cognito Pre Sign-up trigger.

Auto-confirms passwordless sign-ups so the custom auth flow can start
immediately. ``email_verified`` is left alone; it is set only after the
user answers an OTP challenge.

SECURITY NOTES:
- Email addresses are masked in logs
"""

from __future__ import annotations

from typing import Any

from otp_auth.events import resolve_email
from otp_auth.exceptions import InvalidInputError
from otp_auth.triggers.schemas import PreSignUpResponseSchema
from otp_auth.utils.logging import clear_request_context
from otp_auth.utils.logging import configure_logging
from otp_auth.utils.logging import get_logger
from otp_auth.utils.logging import mask_email
from otp_auth.utils.logging import set_request_context
from otp_auth.utils.validators import validate_email

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Handle the pre-signup trigger."""
    set_request_context(
        getattr(context, "aws_request_id", None), event.get("triggerSource")
    )
    try:
        return handle_pre_sign_up(event)
    finally:
        clear_request_context()


def handle_pre_sign_up(event: dict[str, Any]) -> dict[str, Any]:
    request = event.get("request") or {}
    try:
        email = validate_email(resolve_email(request))
    except InvalidInputError as exc:
        # Registration continues; the create trigger rejects bad addresses.
        logger.warning("Pre-signup without a valid email", extra={"detail": exc.message})
    else:
        logger.info("Pre-signup", extra={"email": mask_email(email)})

    return PreSignUpResponseSchema(
        auto_confirm_user=True,
        auto_verify_email=False,
    ).apply(event)
