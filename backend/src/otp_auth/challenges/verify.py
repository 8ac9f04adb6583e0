"""OTP validation for the Verify Auth Challenge trigger.

SECURITY NOTES:
- Codes are compared through their salted digests with hmac.compare_digest
- Never log the expected or provided codes
- Outcomes other than ACCEPTED look identical to the client
"""

from __future__ import annotations

import enum
import time
from dataclasses import dataclass
from typing import Callable
from typing import Optional

from otp_auth.config import OTP_LENGTH
from otp_auth.exceptions import InvalidFormatError
from otp_auth.exceptions import StoreUnavailableError
from otp_auth.models import UserRecord
from otp_auth.models import epoch_to_datetime
from otp_auth.otp import verify_code
from otp_auth.repositories.otp import OtpRepository
from otp_auth.repositories.user import UserRepository
from otp_auth.services.identity import CognitoUserAdmin
from otp_auth.utils.deadline import Deadline
from otp_auth.utils.logging import get_logger
from otp_auth.utils.logging import hash_for_correlation
from otp_auth.utils.logging import mask_email
from otp_auth.utils.validators import validate_code_format
from otp_auth.utils.validators import validate_email

logger = get_logger(__name__)


class VerifyOutcome(str, enum.Enum):
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"
    INVALID_FORMAT = "InvalidFormat"
    NO_CHALLENGE_PENDING = "NoChallengePending"
    EXPIRED = "Expired"


@dataclass(frozen=True)
class VerificationResult:
    outcome: VerifyOutcome
    attempt_count: int = 0
    user: Optional[UserRecord] = None

    @property
    def accepted(self) -> bool:
        return self.outcome is VerifyOutcome.ACCEPTED


class ChallengeVerifier:
    """Checks submitted codes against the live OTP record."""

    def __init__(
        self,
        otp_repository: OtpRepository,
        user_repository: UserRepository,
        user_admin: Optional[CognitoUserAdmin] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._otps = otp_repository
        self._users = user_repository
        self._user_admin = user_admin
        self._clock = clock

    def verify(
        self,
        email: Optional[str],
        answer: Optional[str],
        deadline: Optional[Deadline] = None,
        user_pool_id: Optional[str] = None,
        username: Optional[str] = None,
    ) -> VerificationResult:
        """Verify ``answer`` for ``email``.

        A malformed code is rejected before the store is touched. An
        expired record is deleted. A matching code is consumed and the
        user is marked verified with a fresh ``last_login``; a wrong code
        bumps the record's attempt count and leaves it usable.

        Raises:
            InvalidInputError: If the email address is malformed.
            StoreUnavailableError: If the store fails or the deadline passes.
        """
        try:
            code = validate_code_format(answer, OTP_LENGTH)
        except InvalidFormatError:
            logger.warning("Invalid code format")
            return VerificationResult(VerifyOutcome.INVALID_FORMAT)

        address = validate_email(email)
        log = logger.bind(email=mask_email(address), email_hash=hash_for_correlation(address))

        _check(deadline, "code lookup")
        record = self._otps.get(address)
        if record is None:
            log.warning("No pending code")
            return VerificationResult(VerifyOutcome.NO_CHALLENGE_PENDING)

        log = log.bind(challenge_id=record.challenge_id)
        now = self._clock()
        if record.is_expired(int(now)):
            _check(deadline, "expired code cleanup")
            self._otps.delete(address)
            log.warning("Code expired", extra={"attempt_count": record.attempt_count})
            return VerificationResult(VerifyOutcome.EXPIRED, record.attempt_count)

        if not verify_code(code, record.code_hash, record.code_salt):
            _check(deadline, "attempt update")
            updated = self._otps.increment_attempts(record)
            log.warning("Incorrect code", extra={"attempt_count": updated.attempt_count})
            return VerificationResult(VerifyOutcome.REJECTED, updated.attempt_count)

        _check(deadline, "code consumption")
        self._otps.delete(address)
        user = self._record_login(address, now, log)

        if self._user_admin is not None and user_pool_id and username:
            self._user_admin.mark_email_verified(user_pool_id, username)

        log.info("Code accepted", extra={"attempt_count": record.attempt_count})
        return VerificationResult(VerifyOutcome.ACCEPTED, record.attempt_count, user)

    def _record_login(self, email: str, now: float, log) -> Optional[UserRecord]:
        # The code is already consumed; a failed user update must not turn
        # a correct answer into a rejection.
        try:
            user = self._users.get_by_email(email)
            if user is None:
                log.warning("Accepted code for unknown user")
                return None
            updated = self._users.record_login(user, epoch_to_datetime(now))
        except StoreUnavailableError as exc:
            log.error(
                "Failed to update user after verification",
                extra={"alert": "user_update_failed", "detail": exc.detail or exc.message},
            )
            return None
        if not user.is_verified:
            log.info("User verified", extra={"user_id": updated.user_id})
        return updated


def _check(deadline: Optional[Deadline], stage: str) -> None:
    if deadline is not None:
        deadline.check(stage, StoreUnavailableError)
