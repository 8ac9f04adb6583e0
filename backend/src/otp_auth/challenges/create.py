"""OTP issuance for the Create Auth Challenge trigger.

SECURITY NOTES:
- Codes come from the ``secrets`` module and are stored only as salted hashes
- Email addresses are masked in logs
- Never log codes, hashes or salts
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Callable
from typing import Optional

from otp_auth.config import METADATA_SENT
from otp_auth.config import AuthConfig
from otp_auth.events import CreateRequest
from otp_auth.exceptions import DispatchError
from otp_auth.exceptions import NoChallengePendingError
from otp_auth.exceptions import RateLimitError
from otp_auth.exceptions import StoreUnavailableError
from otp_auth.models import ChallengeFlow
from otp_auth.models import OtpRecord
from otp_auth.models import UserRecord
from otp_auth.models import UserStatus
from otp_auth.models import epoch_to_datetime
from otp_auth.otp import generate_challenge_id
from otp_auth.otp import generate_code
from otp_auth.otp import generate_salt
from otp_auth.otp import hash_code
from otp_auth.repositories.otp import OtpRepository
from otp_auth.repositories.user import UserRepository
from otp_auth.services.email import EmailSender
from otp_auth.services.email import build_template_data
from otp_auth.services.email import select_template
from otp_auth.services.identity import CognitoUserAdmin
from otp_auth.services.rate_limiter import RateLimiter
from otp_auth.utils.deadline import Deadline
from otp_auth.utils.logging import get_logger
from otp_auth.utils.logging import hash_for_correlation
from otp_auth.utils.logging import mask_email
from otp_auth.utils.validators import validate_email

logger = get_logger(__name__)


@dataclass(frozen=True)
class IssuedChallenge:
    """Result of a successful issuance.

    ``dispatched`` is False when the code was stored but the email could
    not be sent; the code stays valid until it expires or is replaced.
    """

    email: str
    user_id: str
    flow: ChallengeFlow
    challenge_id: str
    expires_at: int
    dispatched: bool
    message_id: Optional[str] = None
    reused: bool = False


class ChallengeIssuer:
    """Generates, stores and emails one-time codes."""

    def __init__(
        self,
        config: AuthConfig,
        otp_repository: OtpRepository,
        user_repository: UserRepository,
        rate_limiter: RateLimiter,
        email_sender: EmailSender,
        user_admin: Optional[CognitoUserAdmin] = None,
        clock: Callable[[], float] = time.time,
    ):
        self._config = config
        self._otps = otp_repository
        self._users = user_repository
        self._rate_limiter = rate_limiter
        self._email = email_sender
        self._user_admin = user_admin
        self._clock = clock

    def issue(
        self,
        request: CreateRequest,
        deadline: Optional[Deadline] = None,
    ) -> IssuedChallenge:
        """Issue a new code for ``request.email``.

        Steps run in order: validate, rate-limit check, user lookup or
        registration, code generation, OTP write, rate-limit write, email
        dispatch. A failed dispatch does not undo the earlier writes.

        A retry inside a session whose code was delivered and is still live
        re-presents that challenge instead: no new code, no email and no
        rate-limit event.

        Raises:
            InvalidInputError: If the email address is malformed.
            RateLimitError: If too many codes were requested recently.
            StoreUnavailableError: If the store fails or the deadline passes.
        """
        email = validate_email(request.email)
        now = self._clock()
        log = logger.bind(email=mask_email(email), email_hash=hash_for_correlation(email))

        previous = request.previous_challenge
        if previous is not None and previous.challenge_metadata == METADATA_SENT:
            pending = self._pending_challenge(email, now, deadline, log)
            if pending is not None:
                return pending

        self._enforce_rate_limit(email, now, deadline, log)

        _check(deadline, "user lookup", StoreUnavailableError)
        user = self._users.get_by_email(email)
        if user is None:
            _check(deadline, "user registration", StoreUnavailableError)
            user = self._users.create(
                user_id=request.header.user_name or str(uuid.uuid4()),
                email=email,
                now=epoch_to_datetime(now),
                given_name=request.given_name,
                family_name=request.family_name,
            )
            flow = ChallengeFlow.REGISTRATION
            log.info("Registered pending user", extra={"user_id": user.user_id})
        else:
            flow = ChallengeFlow.LOGIN

        if self._should_confirm(request):
            self._user_admin.confirm_sign_up(  # type: ignore[union-attr]
                request.header.user_pool_id,  # type: ignore[arg-type]
                request.header.user_name,  # type: ignore[arg-type]
            )

        return self._store_and_send(email, user, flow, now, deadline, log)

    def resend(
        self,
        email: Optional[str],
        deadline: Optional[Deadline] = None,
    ) -> IssuedChallenge:
        """Replace a pending code with a fresh one and email it again.

        Used when the first email never arrived. Resends count against the
        same rate limit as new challenges.

        Raises:
            InvalidInputError: If the email address is malformed.
            NoChallengePendingError: If there is no live code to replace.
            RateLimitError: If too many codes were requested recently.
            StoreUnavailableError: If the store fails or the deadline passes.
        """
        address = validate_email(email)
        now = self._clock()
        log = logger.bind(email=mask_email(address), email_hash=hash_for_correlation(address))

        _check(deadline, "pending code lookup", StoreUnavailableError)
        pending = self._otps.get(address)
        if pending is None or pending.is_expired(int(now)):
            raise NoChallengePendingError("No live code to resend")

        self._enforce_rate_limit(address, now, deadline, log)

        _check(deadline, "user lookup", StoreUnavailableError)
        user = self._users.get_by_email(address)
        if user is None:
            raise NoChallengePendingError("Pending code has no matching user")
        flow = _flow_for(user)
        log.info("Resending code", extra={"previous_challenge_id": pending.challenge_id})
        return self._store_and_send(address, user, flow, now, deadline, log)

    def _pending_challenge(self, email, now, deadline, log) -> Optional[IssuedChallenge]:
        _check(deadline, "pending code lookup", StoreUnavailableError)
        pending = self._otps.get(email)
        if pending is None or pending.is_expired(int(now)):
            return None

        _check(deadline, "user lookup", StoreUnavailableError)
        user = self._users.get_by_email(email)
        if user is None:
            return None

        log.info(
            "Re-presenting pending challenge",
            extra={
                "challenge_id": pending.challenge_id,
                "attempt_count": pending.attempt_count,
            },
        )
        return IssuedChallenge(
            email=email,
            user_id=user.user_id,
            flow=_flow_for(user),
            challenge_id=pending.challenge_id,
            expires_at=pending.expires_at,
            dispatched=True,
            reused=True,
        )

    def _enforce_rate_limit(self, email, now, deadline, log) -> None:
        _check(deadline, "rate limit check", StoreUnavailableError)
        decision = self._rate_limiter.check(email, now)
        if not decision.allowed:
            log.warning(
                "Rate limit exceeded",
                extra={
                    "request_count": decision.request_count,
                    "retry_after": decision.retry_after_seconds,
                },
            )
            raise RateLimitError(decision.retry_after_seconds)

    def _store_and_send(
        self,
        email: str,
        user: UserRecord,
        flow: ChallengeFlow,
        now: float,
        deadline: Optional[Deadline],
        log,
    ) -> IssuedChallenge:
        code = generate_code()
        salt = generate_salt()
        created_at = int(now)
        expires_at = created_at + self._config.otp_ttl_seconds
        record = OtpRecord(
            email=email,
            code_hash=hash_code(code, salt),
            code_salt=salt,
            challenge_id=generate_challenge_id(),
            created_at=created_at,
            expires_at=expires_at,
            ttl=expires_at + self._config.otp_cleanup_grace_seconds,
            attempt_count=0,
        )
        _check(deadline, "code write", StoreUnavailableError)
        self._otps.save(record)

        _check(deadline, "rate limit write", StoreUnavailableError)
        self._rate_limiter.record(email, now)

        log = log.bind(challenge_id=record.challenge_id, flow=flow.value)
        message_id = self._dispatch(code, email, user, flow, deadline, log)
        if message_id is not None:
            log.info("Challenge issued")

        return IssuedChallenge(
            email=email,
            user_id=user.user_id,
            flow=flow,
            challenge_id=record.challenge_id,
            expires_at=expires_at,
            dispatched=message_id is not None,
            message_id=message_id,
        )

    def _dispatch(self, code, email, user, flow, deadline, log) -> Optional[str]:
        template = select_template(self._config, flow)
        data = build_template_data(code, self._config.otp_ttl_seconds, user.given_name)
        try:
            _check(deadline, "email dispatch", DispatchError)
            return self._email.send(template, email, data)
        except DispatchError as exc:
            log.error(
                "Failed to send challenge email",
                extra={
                    "alert": "otp_dispatch_failed",
                    "error_code": exc.code,
                    "detail": exc.detail or exc.message,
                    "template": template,
                },
            )
            return None

    def _should_confirm(self, request: CreateRequest) -> bool:
        return bool(
            self._user_admin is not None
            and self._config.confirm_cognito_users
            and request.header.user_pool_id
            and request.header.user_name
        )


def _flow_for(user: UserRecord) -> ChallengeFlow:
    if user.status is UserStatus.PENDING_VERIFICATION:
        return ChallengeFlow.REGISTRATION
    return ChallengeFlow.LOGIN


def _check(deadline: Optional[Deadline], stage: str, error_cls) -> None:
    if deadline is not None:
        deadline.check(stage, error_cls)
