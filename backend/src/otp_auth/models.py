"""Records persisted by the challenge flow.

Records are plain dataclasses that convert to and from store items.
OTP and rate-limit records use epoch seconds so the store can expire
them through a TTL attribute; user records keep ISO-8601 UTC strings.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import Mapping
from typing import Optional

from otp_auth.exceptions import StoreDataError


class UserStatus(str, enum.Enum):
    """Lifecycle of a platform identity."""

    PENDING_VERIFICATION = "PENDING_VERIFICATION"
    VERIFIED = "VERIFIED"


class ChallengeFlow(str, enum.Enum):
    """Whether a challenge registers a new identity or logs one in."""

    REGISTRATION = "registration"
    LOGIN = "login"


def isoformat(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).isoformat()


def epoch_to_datetime(epoch_seconds: float) -> datetime:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc)


@dataclass
class OtpRecord:
    """The single live code for an email address."""

    email: str
    code_hash: str
    code_salt: str
    challenge_id: str
    created_at: int
    expires_at: int
    ttl: int
    attempt_count: int = 0

    TABLE = "otp"

    def is_expired(self, now: int) -> bool:
        # A code is still usable at exactly expires_at.
        return now > self.expires_at

    def to_item(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "code_hash": self.code_hash,
            "code_salt": self.code_salt,
            "challenge_id": self.challenge_id,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "ttl": self.ttl,
            "attempt_count": self.attempt_count,
        }

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "OtpRecord":
        try:
            return cls(
                email=str(item["email"]),
                code_hash=str(item["code_hash"]),
                code_salt=str(item["code_salt"]),
                challenge_id=str(item.get("challenge_id") or ""),
                created_at=int(item["created_at"]),
                expires_at=int(item["expires_at"]),
                ttl=int(item.get("ttl") or item["expires_at"]),
                attempt_count=int(item.get("attempt_count") or 0),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreDataError(cls.TABLE, detail=type(exc).__name__) from exc


@dataclass
class RateLimitRecord:
    """One code request, kept for the length of the rate-limit window."""

    email: str
    request_timestamp: int
    ttl: int

    TABLE = "rate_limit"

    def to_item(self) -> dict[str, Any]:
        return {
            "email": self.email,
            "request_timestamp": self.request_timestamp,
            "ttl": self.ttl,
        }

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "RateLimitRecord":
        try:
            return cls(
                email=str(item["email"]),
                request_timestamp=int(item["request_timestamp"]),
                ttl=int(item.get("ttl") or item["request_timestamp"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreDataError(cls.TABLE, detail=type(exc).__name__) from exc


@dataclass
class UserRecord:
    """A platform identity, keyed by ``user_id`` and looked up by email."""

    user_id: str
    email: str
    status: UserStatus
    created_at: str
    updated_at: str
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    last_login: Optional[str] = None

    TABLE = "users"

    @property
    def is_verified(self) -> bool:
        return self.status is UserStatus.VERIFIED

    def to_item(self) -> dict[str, Any]:
        item: dict[str, Any] = {
            "user_id": self.user_id,
            "email": self.email,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }
        # DynamoDB rejects empty strings in index keys; omit unset optionals.
        if self.given_name:
            item["given_name"] = self.given_name
        if self.family_name:
            item["family_name"] = self.family_name
        if self.last_login:
            item["last_login"] = self.last_login
        return item

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "UserRecord":
        try:
            return cls(
                user_id=str(item["user_id"]),
                email=str(item["email"]),
                status=UserStatus(item["status"]),
                created_at=str(item["created_at"]),
                updated_at=str(item.get("updated_at") or item["created_at"]),
                given_name=item.get("given_name"),
                family_name=item.get("family_name"),
                last_login=item.get("last_login"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise StoreDataError(cls.TABLE, detail=type(exc).__name__) from exc
