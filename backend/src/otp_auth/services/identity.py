"""Cognito user administration used around the OTP challenge.

Both operations are best effort: the OTP record in the store is the
source of truth for the challenge, so a Cognito failure is logged and
reported to the caller as ``False`` rather than raised.
"""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError

from otp_auth.utils.logging import get_logger
from otp_auth.utils.logging import mask_pii

logger = get_logger(__name__)


class CognitoUserAdmin:
    """Confirms sign-ups and marks emails verified in a user pool."""

    def __init__(self, client: Any):
        self._client = client

    def confirm_sign_up(self, user_pool_id: str, username: str) -> bool:
        """Confirm ``username`` so the custom auth flow can complete.

        Returns True when the user is confirmed afterwards, including when
        Cognito reports the user was already confirmed.
        """
        try:
            self._client.admin_confirm_sign_up(
                UserPoolId=user_pool_id,
                Username=username,
            )
        except ClientError as exc:
            error_code = exc.response.get("Error", {}).get("Code", "")
            if error_code == "NotAuthorizedException":
                logger.info("User already confirmed", extra={"user": mask_pii(username)})
                return True
            logger.warning(
                "Failed to confirm user",
                extra={"user": mask_pii(username), "error_code": error_code},
            )
            return False
        except BotoCoreError as exc:
            logger.warning(
                "Failed to confirm user",
                extra={"user": mask_pii(username), "error": type(exc).__name__},
            )
            return False
        logger.info("Confirmed user", extra={"user": mask_pii(username)})
        return True

    def mark_email_verified(self, user_pool_id: str, username: str) -> bool:
        """Set ``email_verified=true`` once the user proved inbox control."""
        try:
            self._client.admin_update_user_attributes(
                UserPoolId=user_pool_id,
                Username=username,
                UserAttributes=[{"Name": "email_verified", "Value": "true"}],
            )
        except (ClientError, BotoCoreError) as exc:
            logger.warning(
                "Failed to set email_verified",
                extra={"user": mask_pii(username), "error": type(exc).__name__},
            )
            return False
        return True
