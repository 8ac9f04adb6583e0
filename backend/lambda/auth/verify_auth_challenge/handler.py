"""Lambda entrypoint for the Cognito Verify Auth Challenge trigger."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from otp_auth.triggers.verify_auth_challenge import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the Verify Auth Challenge handler."""
    return _handler(dict(event), context)
