"""Decision logic for the Define Auth Challenge trigger.

Given the results of the challenges already answered in a sign-in
session, decide whether Cognito should issue tokens, fail the attempt or
present another OTP challenge. This module performs no I/O.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional
from typing import Sequence

from otp_auth.config import METADATA_ERROR
from otp_auth.config import METADATA_RATE_LIMITED
from otp_auth.events import ChallengeResult
from otp_auth.exceptions import AppError
from otp_auth.exceptions import InvalidInputError
from otp_auth.exceptions import MaxAttemptsExceededError

# Metadata set by the create trigger when no code was issued.
REFUSED_ISSUANCE_METADATA = frozenset({METADATA_RATE_LIMITED, METADATA_ERROR})


class SessionState(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    CHALLENGE_ISSUED = "CHALLENGE_ISSUED"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"


class ChallengeAction(str, enum.Enum):
    ISSUE_CHALLENGE = "ISSUE_CHALLENGE"
    SUCCEED = "SUCCEED"
    FAIL = "FAIL"


_STATE_FOR_ACTION = {
    ChallengeAction.ISSUE_CHALLENGE: SessionState.CHALLENGE_ISSUED,
    ChallengeAction.SUCCEED: SessionState.SUCCEEDED,
    ChallengeAction.FAIL: SessionState.FAILED,
}


@dataclass(frozen=True)
class ChallengeDecision:
    """What the orchestrator should do next.

    Attributes:
        action: The decision itself.
        attempts: Custom challenges already answered in this session.
        reason: Short machine-readable explanation, used in logs.
        error: Policy error behind a ``FAIL`` decision, if any.
    """

    action: ChallengeAction
    attempts: int
    reason: str
    error: Optional[AppError] = None

    @property
    def state(self) -> SessionState:
        return _STATE_FOR_ACTION[self.action]

    @property
    def is_terminal(self) -> bool:
        return self.action is not ChallengeAction.ISSUE_CHALLENGE


def current_state(history: Sequence[ChallengeResult]) -> SessionState:
    """Return the session state before a decision is taken."""
    if not history:
        return SessionState.NOT_STARTED
    if history[-1].challenge_result:
        return SessionState.SUCCEEDED
    return SessionState.CHALLENGE_ISSUED


def decide_challenge(
    history: Sequence[ChallengeResult],
    max_attempts: int,
) -> ChallengeDecision:
    """Decide the next step of a sign-in session.

    Args:
        history: Answered challenges, oldest first.
        max_attempts: Number of OTP challenges a session may use.

    Returns:
        ``ISSUE_CHALLENGE`` for an empty history or a failed attempt with
        attempts remaining, ``SUCCEED`` when the latest answer was
        accepted, ``FAIL`` otherwise.
    """
    if not history:
        return ChallengeDecision(ChallengeAction.ISSUE_CHALLENGE, 0, "first_challenge")

    attempts = sum(1 for result in history if result.is_custom)
    last = history[-1]

    if not last.is_custom:
        return ChallengeDecision(
            ChallengeAction.FAIL,
            attempts,
            "unexpected_challenge",
            error=InvalidInputError(
                f"Unexpected challenge in session: {last.challenge_name}",
                field="session",
            ),
        )

    if last.challenge_result:
        return ChallengeDecision(ChallengeAction.SUCCEED, attempts, "challenge_passed")

    if last.challenge_metadata in REFUSED_ISSUANCE_METADATA:
        return ChallengeDecision(ChallengeAction.FAIL, attempts, "issuance_refused")

    if attempts >= max_attempts:
        return ChallengeDecision(
            ChallengeAction.FAIL,
            attempts,
            "max_attempts",
            error=MaxAttemptsExceededError(attempts),
        )

    return ChallengeDecision(ChallengeAction.ISSUE_CHALLENGE, attempts, "retry")
