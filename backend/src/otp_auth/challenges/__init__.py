"""The three steps of the email OTP custom-auth flow."""

from otp_auth.challenges.create import ChallengeIssuer, IssuedChallenge
from otp_auth.challenges.define import (
    ChallengeAction,
    ChallengeDecision,
    SessionState,
    current_state,
    decide_challenge,
)
from otp_auth.challenges.verify import (
    ChallengeVerifier,
    VerificationResult,
    VerifyOutcome,
)

__all__ = [
    "ChallengeAction",
    "ChallengeDecision",
    "ChallengeIssuer",
    "ChallengeVerifier",
    "IssuedChallenge",
    "SessionState",
    "VerificationResult",
    "VerifyOutcome",
    "current_state",
    "decide_challenge",
]
