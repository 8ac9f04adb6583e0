"""Repository for platform user records."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from otp_auth.models import UserRecord
from otp_auth.models import UserStatus
from otp_auth.models import isoformat
from otp_auth.repositories.base import BaseRepository
from otp_auth.services.store import KeyCondition
from otp_auth.services.store import KeyValueStore


class UserRepository(BaseRepository):
    """Stores ``UserRecord`` items keyed by ``user_id``.

    Email lookups go through a secondary index.
    """

    def __init__(self, store: KeyValueStore, table: str, email_index: str):
        super().__init__(store, table)
        self._email_index = email_index

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        items = self._store.query(
            self._table,
            KeyCondition(partition_key="email", partition_value=email),
            index=self._email_index,
            limit=1,
        )
        return UserRecord.from_item(items[0]) if items else None

    def create(
        self,
        user_id: str,
        email: str,
        now: datetime,
        given_name: Optional[str] = None,
        family_name: Optional[str] = None,
    ) -> UserRecord:
        """Create a user awaiting email verification."""
        timestamp = isoformat(now)
        user = UserRecord(
            user_id=user_id,
            email=email,
            status=UserStatus.PENDING_VERIFICATION,
            created_at=timestamp,
            updated_at=timestamp,
            given_name=given_name,
            family_name=family_name,
        )
        self._store.put(self._table, user.to_item())
        return user

    def record_login(self, user: UserRecord, now: datetime) -> UserRecord:
        """Mark the user verified (never the reverse) and stamp ``last_login``."""
        timestamp = isoformat(now)
        updated = replace(
            user,
            status=UserStatus.VERIFIED,
            last_login=timestamp,
            updated_at=timestamp,
        )
        self._store.put(self._table, updated.to_item())
        return updated
