"""Repository for the one live OTP record per email."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

from otp_auth.models import OtpRecord
from otp_auth.repositories.base import BaseRepository


class OtpRepository(BaseRepository):
    """Stores ``OtpRecord`` items keyed by email."""

    def get(self, email: str) -> Optional[OtpRecord]:
        item = self._store.get(self._table, {"email": email})
        return OtpRecord.from_item(item) if item else None

    def save(self, record: OtpRecord) -> None:
        """Write ``record``, replacing any earlier code for the same email."""
        self._store.put(self._table, record.to_item(), ttl=record.ttl)

    def delete(self, email: str) -> None:
        self._store.delete(self._table, {"email": email})

    def increment_attempts(self, record: OtpRecord) -> OtpRecord:
        """Persist one more failed attempt and return the updated record.

        Concurrent verifications may lose an increment; the count is
        informational and never gates acceptance.
        """
        updated = replace(record, attempt_count=record.attempt_count + 1)
        self.save(updated)
        return updated
