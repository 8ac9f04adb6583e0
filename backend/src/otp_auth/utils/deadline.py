"""Invocation time budget."""

from __future__ import annotations

import time
from typing import Any
from typing import Callable
from typing import Optional
from typing import Type

from otp_auth.exceptions import AppError

# Leave room to serialise the response before the Lambda is killed.
_SAFETY_MARGIN_SECONDS = 0.5


class Deadline:
    """Wall-clock budget for one trigger invocation.

    The budget is the smaller of the configured ceiling and the time the
    Lambda runtime reports as remaining.
    """

    def __init__(
        self,
        budget_seconds: float,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._monotonic = monotonic
        self._expires = monotonic() + budget_seconds

    @classmethod
    def for_invocation(cls, ceiling_seconds: float, context: Any = None) -> "Deadline":
        """Build a deadline from the config ceiling and the Lambda context."""
        budget = float(ceiling_seconds)
        remaining_ms = _remaining_millis(context)
        if remaining_ms is not None:
            budget = min(budget, remaining_ms / 1000.0 - _SAFETY_MARGIN_SECONDS)
        return cls(max(budget, 0.0))

    def remaining(self) -> float:
        return max(self._expires - self._monotonic(), 0.0)

    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def check(self, stage: str, error_cls: Type[AppError]) -> None:
        """Raise ``error_cls`` if the budget ran out before ``stage``."""
        if self.expired():
            raise error_cls(f"Invocation deadline exceeded before {stage}")


def _remaining_millis(context: Any) -> Optional[float]:
    getter = getattr(context, "get_remaining_time_in_millis", None)
    if getter is None:
        return None
    try:
        return float(getter())
    except (TypeError, ValueError):
        return None
