"""Typed views of the Cognito custom-auth trigger events.

Cognito hands each trigger a loosely structured JSON document. The
``from_event`` constructors below pull out the fields the challenge flow
uses and reject shapes it cannot reason about, so the services never
branch on raw dictionaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field
from typing import Any
from typing import Mapping
from typing import Optional

from otp_auth.config import CUSTOM_CHALLENGE
from otp_auth.exceptions import InvalidInputError


@dataclass(frozen=True)
class TriggerHeader:
    """Envelope fields shared by every user pool trigger."""

    trigger_source: str = ""
    user_pool_id: Optional[str] = None
    user_name: Optional[str] = None

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "TriggerHeader":
        return cls(
            trigger_source=str(event.get("triggerSource") or ""),
            user_pool_id=_optional_str(event.get("userPoolId")),
            user_name=_optional_str(event.get("userName")),
        )


@dataclass(frozen=True)
class ChallengeResult:
    """One entry of the session history Cognito keeps for a sign-in."""

    challenge_name: str
    challenge_result: bool
    challenge_metadata: Optional[str] = None

    @property
    def is_custom(self) -> bool:
        return self.challenge_name == CUSTOM_CHALLENGE

    @classmethod
    def from_entry(cls, entry: Any) -> "ChallengeResult":
        """Parse a session entry.

        Raises:
            InvalidInputError: If the entry is not an object with a string
                ``challengeName`` and a boolean ``challengeResult``.
        """
        if not isinstance(entry, Mapping):
            raise InvalidInputError("Session entry is not an object", field="session")
        name = entry.get("challengeName")
        result = entry.get("challengeResult")
        if not isinstance(name, str) or not isinstance(result, bool):
            raise InvalidInputError("Malformed session entry", field="session")
        return cls(
            challenge_name=name,
            challenge_result=result,
            challenge_metadata=_optional_str(entry.get("challengeMetadata")),
        )


@dataclass(frozen=True)
class DefineRequest:
    header: TriggerHeader
    session: tuple[ChallengeResult, ...] = ()
    email: Optional[str] = None
    user_not_found: bool = False

    @property
    def is_first_invocation(self) -> bool:
        return not self.session

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "DefineRequest":
        request = _request(event)
        raw_session = request.get("session") or []
        if not isinstance(raw_session, list):
            raise InvalidInputError("Session is not a list", field="session")
        return cls(
            header=TriggerHeader.from_event(event),
            session=tuple(ChallengeResult.from_entry(entry) for entry in raw_session),
            email=resolve_email(request),
            user_not_found=bool(request.get("userNotFound")),
        )


@dataclass(frozen=True)
class CreateRequest:
    """Input of the Create Auth Challenge trigger.

    ``resend`` is set when the client asks for a fresh code for a challenge
    that is still pending (``clientMetadata.action == "resend"``).
    """

    email: Optional[str]
    header: TriggerHeader = field(default_factory=TriggerHeader)
    challenge_name: str = CUSTOM_CHALLENGE
    session: tuple[ChallengeResult, ...] = ()
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    resend: bool = False

    @property
    def previous_challenge(self) -> Optional[ChallengeResult]:
        """Most recent custom challenge already answered in this session."""
        for entry in reversed(self.session):
            if entry.is_custom:
                return entry
        return None

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "CreateRequest":
        request = _request(event)
        attributes = _mapping(request.get("userAttributes"))
        metadata = _mapping(request.get("clientMetadata"))
        raw_session = request.get("session") or []
        session: tuple[ChallengeResult, ...] = ()
        if isinstance(raw_session, list):
            session = tuple(ChallengeResult.from_entry(entry) for entry in raw_session)
        return cls(
            email=resolve_email(request),
            header=TriggerHeader.from_event(event),
            challenge_name=str(request.get("challengeName") or ""),
            session=session,
            given_name=_optional_str(
                attributes.get("given_name") or metadata.get("given_name")
            ),
            family_name=_optional_str(
                attributes.get("family_name") or metadata.get("family_name")
            ),
            resend=str(metadata.get("action") or "").lower() == "resend",
        )


@dataclass(frozen=True)
class VerifyRequest:
    email: Optional[str]
    answer: Optional[str]
    header: TriggerHeader = field(default_factory=TriggerHeader)
    challenge_id: Optional[str] = None

    @classmethod
    def from_event(cls, event: Mapping[str, Any]) -> "VerifyRequest":
        request = _request(event)
        private = _mapping(request.get("privateChallengeParameters"))
        answer = request.get("challengeAnswer")
        return cls(
            email=resolve_email(request),
            answer=answer if isinstance(answer, str) else None,
            header=TriggerHeader.from_event(event),
            challenge_id=_optional_str(private.get("challenge_id")),
        )


def resolve_email(request: Mapping[str, Any]) -> Optional[str]:
    """Return the email from user attributes, falling back to client metadata."""
    attributes = _mapping(request.get("userAttributes"))
    email = attributes.get("email")
    if not email:
        email = _mapping(request.get("clientMetadata")).get("email")
    return _optional_str(email)


def _request(event: Mapping[str, Any]) -> Mapping[str, Any]:
    request = event.get("request")
    if request is None:
        return {}
    if not isinstance(request, Mapping):
        raise InvalidInputError("Trigger request is not an object", field="request")
    return request


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
