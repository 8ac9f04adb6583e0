"""Pytest configuration and fixtures for backend tests.

This module provides shared fixtures for testing the challenge flow,
including an in-memory key-value store, a controllable clock, a fake
email sender and Cognito trigger events.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any
from typing import Mapping
from typing import Optional
from uuid import uuid4

import pytest

# Add backend source to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1] / 'backend' / 'src'))

from otp_auth.config import AuthConfig  # noqa: E402
from otp_auth.exceptions import DispatchError  # noqa: E402
from otp_auth.exceptions import StoreUnavailableError  # noqa: E402
from otp_auth.services.store import KeyCondition  # noqa: E402

START_TIME = 1_700_000_000.0

KEY_SCHEMA = {
    'otp-table': ('email',),
    'rate-limit-table': ('email', 'request_timestamp'),
    'users-table': ('user_id',),
}


class InMemoryStore:
    """KeyValueStore kept in dictionaries, with optional injected failures."""

    def __init__(self, key_schema: Mapping[str, tuple[str, ...]]):
        self._key_schema = dict(key_schema)
        self.tables: dict[str, dict[tuple, dict[str, Any]]] = {
            name: {} for name in key_schema
        }
        self.calls: list[tuple[str, str]] = []
        self.failing: set[str] = set()

    def get(self, table: str, key: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        self._record('get', table)
        item = self.tables[table].get(self._key(table, key))
        return dict(item) if item is not None else None

    def put(self, table: str, item: Mapping[str, Any], ttl: Optional[int] = None) -> None:
        self._record('put', table)
        payload = dict(item)
        if ttl is not None:
            payload['ttl'] = int(ttl)
        self.tables[table][self._key(table, payload)] = payload

    def delete(self, table: str, key: Mapping[str, Any]) -> None:
        self._record('delete', table)
        self.tables[table].pop(self._key(table, key), None)

    def query(
        self,
        table: str,
        condition: KeyCondition,
        index: Optional[str] = None,
        ascending: bool = True,
        limit: Optional[int] = None,
    ) -> list[dict[str, Any]]:
        self._record('query', table)
        items = [
            dict(item)
            for item in self.tables[table].values()
            if item.get(condition.partition_key) == condition.partition_value
        ]
        if condition.sort_key is not None and condition.sort_after is not None:
            items = [
                item for item in items
                if item[condition.sort_key] > condition.sort_after
            ]
        if condition.sort_key is not None:
            items.sort(key=lambda item: item[condition.sort_key], reverse=not ascending)
        return items[:limit] if limit else items

    def items(self, table: str) -> list[dict[str, Any]]:
        return [dict(item) for item in self.tables[table].values()]

    def _key(self, table: str, values: Mapping[str, Any]) -> tuple:
        return tuple(values[name] for name in self._key_schema[table])

    def _record(self, operation: str, table: str) -> None:
        self.calls.append((operation, table))
        if operation in self.failing or f'{operation}:{table}' in self.failing:
            raise StoreUnavailableError(f'{operation} failed', detail='injected')


class FakeClock:
    """Callable returning a settable epoch time."""

    def __init__(self, now: float = START_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEmailSender:
    """EmailSender that records messages instead of sending them."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = False

    def send(self, template_name: str, recipient: str, template_data: Mapping[str, Any]) -> str:
        if self.fail:
            raise DispatchError('SES rejected message', detail='MessageRejected')
        self.sent.append(
            {
                'template': template_name,
                'recipient': recipient,
                'data': dict(template_data),
            }
        )
        return f'message-{len(self.sent)}'

    @property
    def last_code(self) -> str:
        return self.sent[-1]['data']['otp']


# --- Service Fixtures ---


@pytest.fixture
def auth_config() -> AuthConfig:
    return AuthConfig(
        otp_table_name='otp-table',
        rate_limit_table_name='rate-limit-table',
        users_table_name='users-table',
        from_address='no-reply@example.com',
        confirm_cognito_users=False,
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore(KEY_SCHEMA)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def user_repository(store, auth_config):
    from otp_auth.repositories.user import UserRepository

    return UserRepository(
        store, auth_config.users_table_name, auth_config.users_email_index
    )


@pytest.fixture
def otp_repository(store, auth_config):
    from otp_auth.repositories.otp import OtpRepository

    return OtpRepository(store, auth_config.otp_table_name)


@pytest.fixture
def rate_limiter(store, auth_config):
    from otp_auth.repositories.rate_limit import RateLimitRepository
    from otp_auth.services.rate_limiter import RateLimiter

    return RateLimiter(
        RateLimitRepository(store, auth_config.rate_limit_table_name),
        threshold=auth_config.rate_limit_threshold,
        window_seconds=auth_config.rate_limit_window_seconds,
    )


@pytest.fixture
def issuer(auth_config, otp_repository, user_repository, rate_limiter, email_sender, clock):
    from otp_auth.challenges.create import ChallengeIssuer

    return ChallengeIssuer(
        config=auth_config,
        otp_repository=otp_repository,
        user_repository=user_repository,
        rate_limiter=rate_limiter,
        email_sender=email_sender,
        clock=clock,
    )


@pytest.fixture
def verifier(otp_repository, user_repository, clock):
    from otp_auth.challenges.verify import ChallengeVerifier

    return ChallengeVerifier(
        otp_repository=otp_repository,
        user_repository=user_repository,
        clock=clock,
    )


# --- Cognito Event Fixtures ---


def make_trigger_event(trigger_source: str, request: dict[str, Any]) -> dict[str, Any]:
    """Build a Cognito user pool trigger event."""
    return {
        'version': '1',
        'region': 'us-east-1',
        'userPoolId': 'us-east-1_TestPool',
        'userName': str(uuid4()),
        'callerContext': {'awsSdkVersion': 'test', 'clientId': 'client'},
        'triggerSource': trigger_source,
        'request': request,
        'response': {},
    }


@pytest.fixture
def define_event():
    def _build(session: list[dict[str, Any]], email: str = 'user@example.com') -> dict[str, Any]:
        return make_trigger_event(
            'DefineAuthChallenge_Authentication',
            {'userAttributes': {'email': email}, 'session': session},
        )

    return _build


@pytest.fixture
def create_event():
    def _build(
        email: str = 'user@example.com',
        session: Optional[list[dict[str, Any]]] = None,
        **client_metadata: str,
    ) -> dict[str, Any]:
        return make_trigger_event(
            'CreateAuthChallenge_Authentication',
            {
                'userAttributes': {'email': email},
                'challengeName': 'CUSTOM_CHALLENGE',
                'session': session or [],
                'clientMetadata': client_metadata,
            },
        )

    return _build


@pytest.fixture
def verify_event():
    def _build(answer: Any, email: str = 'user@example.com') -> dict[str, Any]:
        return make_trigger_event(
            'VerifyAuthChallengeResponse_Authentication',
            {
                'userAttributes': {'email': email},
                'privateChallengeParameters': {'challenge_id': 'challenge-1'},
                'challengeAnswer': answer,
            },
        )

    return _build


# --- Mock Fixtures ---


@pytest.fixture
def mock_boto3_client(mocker):
    """Mock boto3 client for AWS service calls."""
    mock = mocker.patch('boto3.client')
    return mock


# --- Utility Functions ---


def custom_result(result: bool, metadata: str = 'OTP_EMAIL_SENT') -> dict[str, Any]:
    """Session entry for an answered custom challenge."""
    return {
        'challengeName': 'CUSTOM_CHALLENGE',
        'challengeResult': result,
        'challengeMetadata': metadata,
    }
