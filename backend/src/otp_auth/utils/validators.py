"""Input validation utilities."""

from __future__ import annotations

import re
from typing import Optional

from otp_auth.exceptions import InvalidFormatError
from otp_auth.exceptions import InvalidInputError

EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
MAX_EMAIL_LENGTH = 254


def validate_email(value: Optional[str]) -> str:
    """Validate an email address.

    Args:
        value: The email address to validate.

    Returns:
        The stripped, lowercase email address.

    Raises:
        InvalidInputError: If the email address is missing or malformed.
    """
    if not isinstance(value, str):
        raise InvalidInputError("Email address is required", field="email")
    candidate = value.strip()
    if len(candidate) > MAX_EMAIL_LENGTH or not EMAIL_RE.match(candidate):
        raise InvalidInputError("Invalid email address", field="email")
    return candidate.lower()


def validate_code_format(value: Optional[str], length: int) -> str:
    """Ensure a submitted code is exactly ``length`` ASCII digits.

    Raises:
        InvalidFormatError: If the code is missing or malformed.
    """
    if not isinstance(value, str):
        raise InvalidFormatError("Code is required")
    # str.isdigit() accepts non-ASCII digits such as "٣"
    if len(value) != length or not all("0" <= ch <= "9" for ch in value):
        raise InvalidFormatError()
    return value
