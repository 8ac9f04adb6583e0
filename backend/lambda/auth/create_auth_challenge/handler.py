"""Lambda entrypoint for the Cognito Create Auth Challenge trigger."""

from __future__ import annotations

from typing import Any
from typing import Mapping

from otp_auth.triggers.create_auth_challenge import lambda_handler as _handler


def lambda_handler(event: Mapping[str, Any], context: Any) -> dict[str, Any]:
    """Delegate to the Create Auth Challenge handler."""
    return _handler(dict(event), context)
