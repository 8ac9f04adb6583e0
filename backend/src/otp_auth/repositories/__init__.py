"""Repositories for the records used by the challenge flow."""

from otp_auth.repositories.base import BaseRepository
from otp_auth.repositories.otp import OtpRepository
from otp_auth.repositories.rate_limit import RateLimitRepository
from otp_auth.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "OtpRepository",
    "RateLimitRepository",
    "UserRepository",
]
