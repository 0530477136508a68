from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, Mapping
from unittest.mock import Mock

import pytest
from tweepy.asynchronous import AsyncClient
from tweepy.errors import HTTPException, TooManyRequests

from cosmo_x.rate_limit import RateLimiter, RetryConfig


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def limiter(sleeper: RecordingSleep) -> RateLimiter:
    """Limiter that never actually sleeps."""
    return RateLimiter(RetryConfig(max_retries=2, base_delay=1.0), sleep=sleeper)


def aiohttp_response(
    status: int, reason: str, headers: Mapping[str, str] | None = None
) -> SimpleNamespace:
    """Shape of the aiohttp response tweepy attaches to its HTTP errors."""
    return SimpleNamespace(status=status, reason=reason, headers=dict(headers or {}))


@pytest.fixture
def too_many_requests() -> Callable[..., TooManyRequests]:
    """Builds the 429 error AsyncClient raises, optionally with rate limit headers."""

    def build(headers: Mapping[str, str] | None = None) -> TooManyRequests:
        return TooManyRequests(
            aiohttp_response(429, "Too Many Requests", headers), response_json={}
        )

    return build


@pytest.fixture
def http_error() -> Callable[..., HTTPException]:
    """Builds a non-429 tweepy HTTP error of the given class."""

    def build(
        error_cls: type[HTTPException],
        status: int,
        reason: str,
        payload: dict[str, Any] | None = None,
    ) -> HTTPException:
        return error_cls(aiohttp_response(status, reason), response_json=payload or {})

    return build


@pytest.fixture
def sdk_client() -> Callable[[], Mock]:
    """AsyncClient double: endpoints are AsyncMocks limited to the real method names."""

    def build() -> Mock:
        client = Mock(spec=AsyncClient)
        client.session = None
        return client

    return build
