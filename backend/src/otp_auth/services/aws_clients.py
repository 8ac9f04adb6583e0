"""Shared boto3 client factory with caching.

Clients are created once per Lambda container. They fail fast: a single
attempt per call and connect/read timeouts derived from the invocation
ceiling, so a slow dependency cannot hang a trigger past the Cognito
invocation timeout.
"""

from __future__ import annotations

from typing import Any

import boto3
import botocore.config

_CLIENT_CACHE: dict[tuple[str, str | None, int], Any] = {}

DEFAULT_TIMEOUT_SECONDS = 30


def client_config(timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS) -> botocore.config.Config:
    """Return a botocore config bounded by ``timeout_seconds``."""
    connect_timeout = max(1, min(5, timeout_seconds // 6))
    read_timeout = max(1, timeout_seconds // 3)
    return botocore.config.Config(
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        retries={"total_max_attempts": 1, "mode": "standard"},
    )


def get_client(
    service: str,
    region_name: str | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    """Return a cached boto3 client for the given service."""
    cache_key = (service, region_name, timeout_seconds)
    if cache_key in _CLIENT_CACHE:
        return _CLIENT_CACHE[cache_key]
    client = boto3.client(  # type: ignore[call-overload]
        service,
        region_name=region_name,
        config=client_config(timeout_seconds),
    )
    _CLIENT_CACHE[cache_key] = client
    return client


def clear_client_cache() -> None:
    """Clear cached boto3 clients (useful in tests)."""
    _CLIENT_CACHE.clear()


def get_dynamodb_client(
    region_name: str | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    return get_client("dynamodb", region_name, timeout_seconds)


def get_ses_client(
    region_name: str | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    return get_client("ses", region_name, timeout_seconds)


def get_cognito_idp_client(
    region_name: str | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> Any:
    return get_client("cognito-idp", region_name, timeout_seconds)
