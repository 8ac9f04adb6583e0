"""Cognito Verify Auth Challenge trigger.

Checks the submitted answer against the stored code. Every failure,
including store errors, is reported to Cognito as ``answerCorrect=false``.

SECURITY NOTES:
- Email addresses are masked in logs
- Never log the expected or provided OTP codes
"""

from __future__ import annotations

from typing import Any
from typing import Optional

from otp_auth import bootstrap
from otp_auth.challenges.verify import ChallengeVerifier
from otp_auth.events import VerifyRequest
from otp_auth.exceptions import AppError
from otp_auth.triggers.schemas import VerifyChallengeResponseSchema
from otp_auth.utils.deadline import Deadline
from otp_auth.utils.logging import clear_request_context
from otp_auth.utils.logging import configure_logging
from otp_auth.utils.logging import get_logger
from otp_auth.utils.logging import log_trigger_event
from otp_auth.utils.logging import set_request_context

configure_logging()
logger = get_logger(__name__)


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Verify the authentication challenge response."""
    set_request_context(
        getattr(context, "aws_request_id", None), event.get("triggerSource")
    )
    try:
        try:
            config = bootstrap.get_config()
            verifier = bootstrap.get_verifier()
        except AppError as exc:
            logger.error("Invalid configuration", extra={"error_code": exc.code})
            return _answer(event, False)
        deadline = Deadline.for_invocation(config.handler_timeout_seconds, context)
        return handle_verify_challenge(event, verifier, deadline)
    finally:
        clear_request_context()


def handle_verify_challenge(
    event: dict[str, Any],
    verifier: ChallengeVerifier,
    deadline: Optional[Deadline] = None,
) -> dict[str, Any]:
    log_trigger_event(logger, event)
    try:
        request = VerifyRequest.from_event(event)
        result = verifier.verify(
            request.email,
            request.answer,
            deadline,
            user_pool_id=request.header.user_pool_id,
            username=request.header.user_name,
        )
    except AppError as exc:
        logger.error(
            "Failed to verify auth challenge",
            extra={"error_code": exc.code, "detail": exc.detail or exc.message},
        )
        return _answer(event, False)
    except Exception:
        logger.exception("Unexpected error verifying auth challenge")
        return _answer(event, False)

    logger.info(
        "Challenge verification result",
        extra={
            "outcome": result.outcome.value,
            "attempt_count": result.attempt_count,
            "challenge_id": request.challenge_id,
        },
    )
    return _answer(event, result.accepted)


def _answer(event: dict[str, Any], correct: bool) -> dict[str, Any]:
    return VerifyChallengeResponseSchema(answer_correct=correct).apply(event)
