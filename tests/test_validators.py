"""Tests for input validators."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from otp_auth.exceptions import InvalidFormatError  # noqa: E402
from otp_auth.exceptions import InvalidInputError  # noqa: E402
from otp_auth.utils.validators import validate_code_format  # noqa: E402
from otp_auth.utils.validators import validate_email  # noqa: E402


class TestValidateEmail:
    """Tests for validate_email."""

    def test_normalises_case_and_whitespace(self) -> None:
        assert validate_email('  New.User@Example.COM ') == 'new.user@example.com'

    @pytest.mark.parametrize(
        'value',
        [None, '', 'not-an-email', 'user@', '@example.com', 'user@example', 'a b@example.com'],
    )
    def test_rejects_malformed(self, value) -> None:
        with pytest.raises(InvalidInputError):
            validate_email(value)

    def test_rejects_overlong(self) -> None:
        with pytest.raises(InvalidInputError):
            validate_email('a' * 250 + '@example.com')


class TestValidateCodeFormat:
    """Tests for validate_code_format."""

    def test_accepts_six_digits(self) -> None:
        assert validate_code_format('012345', 6) == '012345'

    @pytest.mark.parametrize(
        'value',
        [None, '', '12345', '1234567', '12a456', ' 12345', '١٢٣٤٥٦', 123456],
    )
    def test_rejects_malformed(self, value) -> None:
        with pytest.raises(InvalidFormatError):
            validate_code_format(value, 6)
