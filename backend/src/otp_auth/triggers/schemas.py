"""Pydantic schemas for the trigger responses returned to Cognito."""

from __future__ import annotations

from typing import Any
from typing import Dict
from typing import Optional

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class _CognitoResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def apply(self, event: dict[str, Any]) -> dict[str, Any]:
        """Merge this response into ``event["response"]`` and return the event."""
        response = event.setdefault("response", {})
        response.update(self.model_dump(by_alias=True, exclude_none=True))
        return event


class DefineChallengeResponseSchema(_CognitoResponse):
    """Define Auth Challenge response."""

    issue_tokens: bool = Field(alias="issueTokens")
    fail_authentication: bool = Field(alias="failAuthentication")
    challenge_name: Optional[str] = Field(default=None, alias="challengeName")

    def apply(self, event: dict[str, Any]) -> dict[str, Any]:
        event = super().apply(event)
        if self.challenge_name is None:
            event["response"].pop("challengeName", None)
        return event


class PublicChallengeParametersSchema(BaseModel):
    """Parameters the client sees. Never the code or its hash."""

    model_config = ConfigDict(frozen=True)

    challenge_type: str
    message: str
    email: Optional[str] = None
    retry_after: Optional[str] = None


class PrivateChallengeParametersSchema(BaseModel):
    """Parameters forwarded to the verify trigger only."""

    model_config = ConfigDict(frozen=True)

    challenge_id: str
    user_id: str
    flow: str


class CreateChallengeResponseSchema(_CognitoResponse):
    """Create Auth Challenge response."""

    public_challenge_parameters: PublicChallengeParametersSchema = Field(
        alias="publicChallengeParameters"
    )
    private_challenge_parameters: Optional[PrivateChallengeParametersSchema] = Field(
        default=None, alias="privateChallengeParameters"
    )
    challenge_metadata: str = Field(alias="challengeMetadata")

    def apply(self, event: dict[str, Any]) -> dict[str, Any]:
        event = super().apply(event)
        if self.private_challenge_parameters is None:
            private: Dict[str, str] = {}
            event["response"]["privateChallengeParameters"] = private
        return event


class VerifyChallengeResponseSchema(_CognitoResponse):
    """Verify Auth Challenge response."""

    answer_correct: bool = Field(alias="answerCorrect")


class PreSignUpResponseSchema(_CognitoResponse):
    """Pre Sign-up response."""

    auto_confirm_user: bool = Field(alias="autoConfirmUser")
    auto_verify_email: bool = Field(alias="autoVerifyEmail")
