"""Per-email throttling of OTP issuance."""

from __future__ import annotations

import math
from dataclasses import dataclass

from otp_auth.models import RateLimitRecord
from otp_auth.repositories.rate_limit import RateLimitRepository


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate-limit check."""

    allowed: bool
    request_count: int
    retry_after_seconds: int = 0


class RateLimiter:
    """Sliding-window limiter: at most ``threshold`` requests per ``window_seconds``.

    Events are keyed by millisecond timestamps so bursts within one second
    do not collapse into a single record. Two requests in the same
    millisecond share a key and count once. Counting is not transactional;
    concurrent requests at the boundary may be over- or under-counted.
    """

    def __init__(
        self,
        repository: RateLimitRepository,
        threshold: int,
        window_seconds: int,
    ):
        self._repository = repository
        self._threshold = threshold
        self._window = window_seconds

    def check(self, email: str, now: float) -> RateLimitDecision:
        """Count requests in ``(now - window, now]`` and decide."""
        now_ms = _millis(now)
        window_ms = self._window * 1000
        timestamps = self._repository.timestamps_after(email, now_ms - window_ms)
        count = len(timestamps)
        if count < self._threshold:
            return RateLimitDecision(allowed=True, request_count=count)

        # Allowed again once enough events age out to drop below the threshold.
        releasing = timestamps[count - self._threshold]
        retry_after = math.ceil((releasing + window_ms - now_ms) / 1000)
        return RateLimitDecision(
            allowed=False,
            request_count=count,
            retry_after_seconds=max(1, retry_after),
        )

    def record(self, email: str, now: float) -> RateLimitRecord:
        record = RateLimitRecord(
            email=email,
            request_timestamp=_millis(now),
            ttl=int(now) + self._window,
        )
        self._repository.record(record)
        return record


def _millis(epoch_seconds: float) -> int:
    return int(round(epoch_seconds * 1000))
