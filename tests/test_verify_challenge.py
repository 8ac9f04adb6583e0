"""Tests for OTP verification."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from conftest import START_TIME  # noqa: E402
from otp_auth.challenges.verify import ChallengeVerifier  # noqa: E402
from otp_auth.challenges.verify import VerifyOutcome  # noqa: E402
from otp_auth.exceptions import InvalidInputError  # noqa: E402
from otp_auth.exceptions import StoreUnavailableError  # noqa: E402
from otp_auth.models import OtpRecord  # noqa: E402
from otp_auth.models import UserStatus  # noqa: E402
from otp_auth.models import epoch_to_datetime  # noqa: E402
from otp_auth.otp import hash_code  # noqa: E402
from otp_auth.utils.deadline import Deadline  # noqa: E402

EMAIL = 'user@example.com'
CODE = '123456'


@pytest.fixture
def pending(otp_repository, user_repository) -> OtpRecord:
    """A pending user with a live code of 123456."""
    user_repository.create('u1', EMAIL, epoch_to_datetime(START_TIME))
    record = OtpRecord(
        email=EMAIL,
        code_hash=hash_code(CODE, 'salt'),
        code_salt='salt',
        challenge_id='challenge-1',
        created_at=int(START_TIME),
        expires_at=int(START_TIME) + 300,
        ttl=int(START_TIME) + 3900,
    )
    otp_repository.save(record)
    return record


class TestVerify:
    """Tests for ChallengeVerifier.verify."""

    @pytest.mark.parametrize('answer', [None, '', '12345', '1234567', 'abcdef', '12 456'])
    def test_invalid_format_skips_store(self, verifier, store, pending, answer) -> None:
        calls_before = len(store.calls)
        result = verifier.verify(EMAIL, answer)
        assert result.outcome is VerifyOutcome.INVALID_FORMAT
        assert len(store.calls) == calls_before

    def test_no_pending_code(self, verifier) -> None:
        result = verifier.verify(EMAIL, CODE)
        assert result.outcome is VerifyOutcome.NO_CHALLENGE_PENDING
        assert not result.accepted

    def test_invalid_email(self, verifier) -> None:
        with pytest.raises(InvalidInputError):
            verifier.verify('nope', CODE)

    def test_accepts_correct_code(self, verifier, store, pending, clock) -> None:
        result = verifier.verify(EMAIL, CODE)

        assert result.accepted
        assert store.items('otp-table') == []
        [user] = store.items('users-table')
        assert user['status'] == UserStatus.VERIFIED.value
        assert user['last_login'] == epoch_to_datetime(clock.now).isoformat()
        assert result.user is not None and result.user.is_verified

    def test_code_is_single_use(self, verifier, pending) -> None:
        assert verifier.verify(EMAIL, CODE).accepted
        assert verifier.verify(EMAIL, CODE).outcome is VerifyOutcome.NO_CHALLENGE_PENDING

    def test_accepts_at_expiry_instant(self, verifier, pending, clock) -> None:
        clock.advance(300)
        assert verifier.verify(EMAIL, CODE).accepted

    def test_expired_code_rejected_and_deleted(self, verifier, store, pending, clock) -> None:
        clock.advance(301)
        result = verifier.verify(EMAIL, CODE)
        assert result.outcome is VerifyOutcome.EXPIRED
        assert store.items('otp-table') == []
        [user] = store.items('users-table')
        assert user['status'] == UserStatus.PENDING_VERIFICATION.value

    def test_wrong_code_increments_attempts(self, verifier, store, pending) -> None:
        result = verifier.verify(EMAIL, '000000')
        assert result.outcome is VerifyOutcome.REJECTED
        assert result.attempt_count == 1
        [item] = store.items('otp-table')
        assert item['attempt_count'] == 1

        assert verifier.verify(EMAIL, '000001').attempt_count == 2
        assert store.items('otp-table')[0]['attempt_count'] == 2

    def test_wrong_code_keeps_user_status(self, verifier, store, pending) -> None:
        verifier.verify(EMAIL, '000000')
        assert store.items('users-table')[0]['status'] == UserStatus.PENDING_VERIFICATION.value

    def test_verified_user_never_downgrades(self, verifier, store, pending, user_repository, clock) -> None:
        user = user_repository.get_by_email(EMAIL)
        user_repository.record_login(user, epoch_to_datetime(START_TIME))

        verifier.verify(EMAIL, '000000')
        clock.advance(400)
        verifier.verify(EMAIL, CODE)
        verifier.verify(EMAIL, 'bad')

        assert store.items('users-table')[0]['status'] == UserStatus.VERIFIED.value

    def test_login_updates_last_login_only(self, verifier, store, pending, user_repository, clock) -> None:
        user = user_repository.get_by_email(EMAIL)
        user_repository.record_login(user, epoch_to_datetime(START_TIME - 86400))
        clock.advance(10)

        assert verifier.verify(EMAIL, CODE).accepted
        [item] = store.items('users-table')
        assert item['status'] == UserStatus.VERIFIED.value
        assert item['last_login'] == epoch_to_datetime(clock.now).isoformat()
        assert item['created_at'] == epoch_to_datetime(START_TIME).isoformat()

    def test_store_failure_on_lookup_propagates(self, verifier, store, pending) -> None:
        store.failing.add('get:otp-table')
        with pytest.raises(StoreUnavailableError):
            verifier.verify(EMAIL, CODE)

    def test_user_update_failure_still_accepts(self, verifier, store, pending) -> None:
        store.failing.add('put:users-table')
        result = verifier.verify(EMAIL, CODE)
        assert result.accepted
        assert result.user is None
        assert store.items('otp-table') == []

    def test_accepted_code_for_unknown_user(self, verifier, store, pending) -> None:
        store.tables['users-table'].clear()
        result = verifier.verify(EMAIL, CODE)
        assert result.accepted
        assert result.user is None

    def test_expired_deadline(self, verifier, pending) -> None:
        with pytest.raises(StoreUnavailableError):
            verifier.verify(EMAIL, CODE, deadline=Deadline(0))

    def test_marks_cognito_email_verified(self, otp_repository, user_repository, clock, pending, mocker) -> None:
        user_admin = mocker.Mock()
        verifier = ChallengeVerifier(otp_repository, user_repository, user_admin, clock)
        verifier.verify(EMAIL, CODE, user_pool_id='pool', username='sub-1')
        user_admin.mark_email_verified.assert_called_once_with('pool', 'sub-1')

    def test_rejection_does_not_touch_cognito(self, otp_repository, user_repository, clock, pending, mocker) -> None:
        user_admin = mocker.Mock()
        verifier = ChallengeVerifier(otp_repository, user_repository, user_admin, clock)
        verifier.verify(EMAIL, '000000', user_pool_id='pool', username='sub-1')
        user_admin.mark_email_verified.assert_not_called()
