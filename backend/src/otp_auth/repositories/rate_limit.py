"""Repository for per-email OTP request events."""

from __future__ import annotations

from otp_auth.models import RateLimitRecord
from otp_auth.repositories.base import BaseRepository
from otp_auth.services.store import KeyCondition


class RateLimitRepository(BaseRepository):
    """Stores one ``RateLimitRecord`` per code request."""

    def record(self, record: RateLimitRecord) -> None:
        self._store.put(self._table, record.to_item(), ttl=record.ttl)

    def timestamps_after(self, email: str, after: int) -> list[int]:
        """Return request timestamps strictly newer than ``after``, oldest first.

        The store's TTL sweep is lazy, so the lower bound is what keeps
        stale events out of the count.
        """
        items = self._store.query(
            self._table,
            KeyCondition(
                partition_key="email",
                partition_value=email,
                sort_key="request_timestamp",
                sort_after=after,
            ),
            ascending=True,
        )
        return sorted(
            record.request_timestamp
            for record in map(RateLimitRecord.from_item, items)
            if record.request_timestamp > after
        )
