"""Cognito Define Auth Challenge trigger.

Determines whether to issue tokens, fail authentication, or present
another OTP challenge based on the session history.
"""

from __future__ import annotations

from typing import Any
from typing import Optional

from otp_auth import bootstrap
from otp_auth.challenges.define import ChallengeAction
from otp_auth.challenges.define import current_state
from otp_auth.challenges.define import decide_challenge
from otp_auth.config import CUSTOM_CHALLENGE
from otp_auth.events import DefineRequest
from otp_auth.exceptions import AppError
from otp_auth.triggers.schemas import DefineChallengeResponseSchema
from otp_auth.utils.logging import clear_request_context
from otp_auth.utils.logging import configure_logging
from otp_auth.utils.logging import get_logger
from otp_auth.utils.logging import log_trigger_event
from otp_auth.utils.logging import mask_email
from otp_auth.utils.logging import set_request_context

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Define the authentication challenge flow."""
    set_request_context(
        getattr(context, "aws_request_id", None), event.get("triggerSource")
    )
    try:
        try:
            max_attempts = bootstrap.get_config().max_challenge_attempts
        except AppError as exc:
            logger.error("Invalid configuration", extra={"error_code": exc.code})
            return _fail(event)
        return handle_define_challenge(event, max_attempts)
    finally:
        clear_request_context()


def handle_define_challenge(event: dict[str, Any], max_attempts: int) -> dict[str, Any]:
    log_trigger_event(logger, event)
    try:
        request = DefineRequest.from_event(event)
    except AppError as exc:
        logger.warning("Malformed define request", extra={"detail": exc.message})
        return _fail(event)

    log = logger.bind(email=mask_email(request.email or ""))
    decision = decide_challenge(request.session, max_attempts)
    log.info(
        "Challenge decision",
        extra={
            "from_state": current_state(request.session).value,
            "first_invocation": request.is_first_invocation,
            "user_not_found": request.user_not_found,
            "to_state": decision.state.value,
            "attempts": decision.attempts,
            "max_attempts": max_attempts,
            "reason": decision.reason,
            "error_code": decision.error.code if decision.error else None,
        },
    )

    if decision.action is ChallengeAction.SUCCEED:
        return _respond(event, issue_tokens=True, fail=False)
    if decision.action is ChallengeAction.FAIL:
        return _fail(event)
    return _respond(event, issue_tokens=False, fail=False, challenge=CUSTOM_CHALLENGE)


def _fail(event: dict[str, Any]) -> dict[str, Any]:
    return _respond(event, issue_tokens=False, fail=True)


def _respond(
    event: dict[str, Any],
    issue_tokens: bool,
    fail: bool,
    challenge: Optional[str] = None,
) -> dict[str, Any]:
    return DefineChallengeResponseSchema(
        issue_tokens=issue_tokens,
        fail_authentication=fail,
        challenge_name=challenge,
    ).apply(event)
