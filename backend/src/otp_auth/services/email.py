"""SES email dispatch for one-time codes."""

from __future__ import annotations

import json
from typing import Any
from typing import Mapping
from typing import Protocol

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from otp_auth.config import AuthConfig
from otp_auth.exceptions import DispatchError
from otp_auth.models import ChallengeFlow


class EmailSender(Protocol):
    """Outbound email collaborator."""

    def send(
        self,
        template_name: str,
        recipient: str,
        template_data: Mapping[str, Any],
    ) -> str:
        """Send a templated message and return its message id."""
        ...


class SesEmailSender:
    """``EmailSender`` backed by SES templated email."""

    def __init__(self, client: Any, source: str):
        self._client = client
        self._source = source

    def send(
        self,
        template_name: str,
        recipient: str,
        template_data: Mapping[str, Any],
    ) -> str:
        try:
            response = self._client.send_templated_email(
                Source=self._source,
                Destination={"ToAddresses": [recipient]},
                Template=template_name,
                TemplateData=json.dumps(dict(template_data)),
            )
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "Unknown")
            raise DispatchError(
                f"SES rejected template {template_name}", detail=error_code
            ) from exc
        except BotoCoreError as exc:
            raise DispatchError(
                f"SES unreachable sending {template_name}", detail=type(exc).__name__
            ) from exc
        return str(response.get("MessageId", ""))


def select_template(config: AuthConfig, flow: ChallengeFlow) -> str:
    """Pick the registration or login template for ``flow``."""
    if flow is ChallengeFlow.REGISTRATION:
        return config.template_name(config.registration_template)
    return config.template_name(config.login_template)


def build_template_data(
    code: str,
    expires_in_seconds: int,
    given_name: str | None = None,
) -> dict[str, str]:
    """Template variables shared by both OTP templates."""
    return {
        "otp": code,
        "expiresInMinutes": str(max(1, expires_in_seconds // 60)),
        "firstName": given_name or "",
    }
