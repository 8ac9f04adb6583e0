"""Lambda entrypoint for the Cognito Pre Sign-up trigger."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from otp_auth.triggers.pre_sign_up import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the Pre Sign-up handler."""
    return _handler(dict(event), context)
