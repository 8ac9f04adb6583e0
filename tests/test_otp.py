"""Tests for OTP generation and hashing."""

from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from otp_auth import otp  # noqa: E402
from otp_auth.otp import constant_time_equals  # noqa: E402
from otp_auth.otp import generate_challenge_id  # noqa: E402
from otp_auth.otp import generate_code  # noqa: E402
from otp_auth.otp import generate_salt  # noqa: E402
from otp_auth.otp import hash_code  # noqa: E402
from otp_auth.otp import verify_code  # noqa: E402


class TestGenerateCode:
    """Tests for generate_code."""

    def test_six_ascii_digits(self) -> None:
        for _ in range(200):
            code = generate_code()
            assert len(code) == 6
            assert all('0' <= ch <= '9' for ch in code)

    def test_custom_length(self) -> None:
        assert len(generate_code(8)) == 8

    def test_leading_zeros_are_kept(self, mocker) -> None:
        mocker.patch.object(otp.secrets, 'choice', return_value='0')
        assert generate_code() == '000000'

    def test_codes_vary(self) -> None:
        codes = {generate_code() for _ in range(50)}
        assert len(codes) > 1


class TestHashing:
    """Tests for salted hashing and verification."""

    def test_hash_is_not_plaintext(self) -> None:
        digest = hash_code('123456', 'salt')
        assert '123456' not in digest
        assert len(digest) == 64

    def test_salt_changes_digest(self) -> None:
        assert hash_code('123456', 'a') != hash_code('123456', 'b')

    def test_salts_are_random(self) -> None:
        assert generate_salt() != generate_salt()

    def test_verify_code_matches(self) -> None:
        salt = generate_salt()
        assert verify_code('123456', hash_code('123456', salt), salt)

    def test_verify_code_rejects_wrong_code(self) -> None:
        salt = generate_salt()
        assert not verify_code('123457', hash_code('123456', salt), salt)

    def test_verify_code_uses_constant_time_comparison(self, mocker) -> None:
        spy = mocker.spy(otp.hmac, 'compare_digest')
        salt = generate_salt()
        verify_code('000000', hash_code('123456', salt), salt)
        assert spy.call_count == 1

    def test_mismatch_position_does_not_change_work(self, mocker) -> None:
        """Early and late mismatches both hash and compare full digests."""
        spy = mocker.spy(otp.hmac, 'compare_digest')
        salt = generate_salt()
        stored = hash_code('123456', salt)
        verify_code('923456', stored, salt)
        verify_code('123459', stored, salt)
        lengths = [(len(call.args[0]), len(call.args[1])) for call in spy.call_args_list]
        assert lengths == [(64, 64), (64, 64)]


class TestConstantTimeEquals:
    """Tests for constant_time_equals."""

    def test_equal(self) -> None:
        assert constant_time_equals('abc', 'abc')

    def test_different(self) -> None:
        assert not constant_time_equals('abc', 'abd')

    def test_different_length(self) -> None:
        assert not constant_time_equals('abc', 'abcd')


def test_challenge_ids_are_unique() -> None:
    assert generate_challenge_id() != generate_challenge_id()
