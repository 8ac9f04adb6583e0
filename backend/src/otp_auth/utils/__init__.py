"""Utility modules for the custom auth triggers."""

from otp_auth.utils.deadline import Deadline
from otp_auth.utils.logging import (
    clear_request_context,
    configure_logging,
    get_logger,
    hash_for_correlation,
    mask_email,
    mask_pii,
    set_request_context,
)
from otp_auth.utils.validators import validate_code_format, validate_email

__all__ = [
    "Deadline",
    "clear_request_context",
    "configure_logging",
    "get_logger",
    "hash_for_correlation",
    "mask_email",
    "mask_pii",
    "set_request_context",
    "validate_code_format",
    "validate_email",
]
