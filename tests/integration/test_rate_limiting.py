"""
Integration tests for rate limiting across the full stack.

Factory-built clients wrap AsyncClient doubles that raise tweepy's own
``TooManyRequests`` so 429s travel through the real error conversion,
header extraction and retry executor.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from cosmo_x.config import ConfigManager
from cosmo_x.exceptions import RateLimitExceeded
from cosmo_x.factory import CosmoXFactory
from cosmo_x.rate_limit import RateLimiter, RetryConfig
from cosmo_x.services.lookup_service import LookupService
from cosmo_x.services.post_service import PostService
from cosmo_x.services.search_service import SearchService

NOW = 1_700_000_000.0


@pytest.fixture
def test_credentials(tmp_path):
    """Create test credentials in temporary .env file."""
    env_file = tmp_path / ".env"
    env_file.write_text(
        """
X_CONSUMER_KEY=test_consumer_key
X_CONSUMER_SECRET=test_consumer_secret
X_ACCESS_TOKEN=test_access_token
X_ACCESS_TOKEN_SECRET=test_access_token_secret
X_BEARER_TOKEN=test_bearer_token
"""
    )
    return env_file


class Clock:
    def __init__(self) -> None:
        self.now = NOW
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def limiter(clock) -> RateLimiter:
    return RateLimiter(RetryConfig(max_retries=2), sleep=clock.sleep, clock=clock)


@pytest.fixture
def sdk(sdk_client, monkeypatch):
    clients = SimpleNamespace(user=sdk_client(), app=sdk_client())
    monkeypatch.setattr(
        "cosmo_x.factory.AsyncClient", Mock(side_effect=[clients.user, clients.app])
    )
    return clients


@pytest.fixture
def cosmo(test_credentials, sdk):
    config = ConfigManager(env={}, dotenv_path=test_credentials)
    return CosmoXFactory.create_from_config(config)


@pytest.fixture
def too_many(too_many_requests):
    def build(reset_in: int | None = None):
        headers = {"x-rate-limit-remaining": "0"}
        if reset_in is not None:
            headers["x-rate-limit-reset"] = str(int(NOW) + reset_in)
        return too_many_requests(headers)

    return build


@pytest.mark.asyncio
async def test_search_waits_for_reset_header(cosmo, sdk, limiter, clock, too_many):
    sdk.app.search_recent_tweets.side_effect = [
        too_many(reset_in=30),
        {"data": [{"id": "1", "text": "hit"}], "meta": {}},
    ]

    async with cosmo:
        response = await SearchService(cosmo.reader, limiter).search_recent("python")

    assert [tweet.id for tweet in response.results] == ["1"]
    assert sdk.app.search_recent_tweets.await_count == 2
    assert clock.sleeps == [31.0]
    assert not limiter.is_limited("search")


@pytest.mark.asyncio
async def test_post_backs_off_without_reset_header(cosmo, sdk, limiter, clock, too_many):
    sdk.user.create_tweet.side_effect = [
        too_many(),
        too_many(),
        {"data": {"id": "9", "text": "hello"}},
    ]

    async with cosmo:
        post = await PostService(cosmo.client, limiter).create_post("hello")

    assert post.id == "9"
    assert sdk.user.create_tweet.await_count == 3
    assert clock.sleeps == [15.0, 30.0]


@pytest.mark.asyncio
async def test_exhausted_endpoint_pre_waits_on_next_call(cosmo, sdk, clock, too_many):
    limiter = RateLimiter(RetryConfig(max_retries=0), sleep=clock.sleep, clock=clock)
    sdk.user.get_me.side_effect = [
        too_many(reset_in=60),
        {"data": {"id": "1", "username": "cosmo"}},
    ]
    lookup = LookupService(cosmo.client, limiter)

    async with cosmo:
        with pytest.raises(RateLimitExceeded):
            await lookup.get_me()
        assert limiter.is_limited("user.me")

        me = await lookup.get_me()

    assert me.username == "cosmo"
    assert clock.sleeps == [61.5]


@pytest.mark.asyncio
async def test_other_endpoints_unaffected_by_exhausted_label(cosmo, sdk, clock, too_many):
    limiter = RateLimiter(RetryConfig(max_retries=0), sleep=clock.sleep, clock=clock)
    sdk.app.search_recent_tweets.side_effect = too_many(reset_in=600)
    sdk.app.get_user.return_value = {"data": {"id": "1", "username": "cosmo"}}

    async with cosmo:
        with pytest.raises(RateLimitExceeded):
            await SearchService(cosmo.reader, limiter).search_recent("python")
        user = await LookupService(cosmo.reader, limiter).get_user_by_username("cosmo")

    assert user.id == "1"
    assert clock.sleeps == []
