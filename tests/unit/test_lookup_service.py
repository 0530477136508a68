from __future__ import annotations

import pytest

from cosmo_x.models import ApiResponse
from cosmo_x.services.lookup_service import LookupService

TWEET = {
    "id": "1",
    "text": "hello world",
    "author_id": "u1",
    "created_at": "2026-01-01T00:00:00.000Z",
    "public_metrics": {
        "like_count": 3,
        "retweet_count": 1,
        "reply_count": 2,
        "quote_count": 0,
        "bookmark_count": 5,
        "impression_count": 100,
    },
}
USER = {
    "id": "u1",
    "name": "Cosmo",
    "username": "cosmo",
    "public_metrics": {"followers_count": 10, "following_count": 4, "tweet_count": 50},
}


class FakeLookupClient:
    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple, dict]] = []
        self.responses: dict[str, ApiResponse] = {}

    def _record(self, name, *args, **params):
        self.calls.append((name, args, params))
        return self.responses.get(name, ApiResponse())

    async def get_tweet(self, tweet_id, **params):
        return self._record("get_tweet", tweet_id, **params)

    async def get_tweets(self, ids, **params):
        return self._record("get_tweets", ids, **params)

    async def get_user(self, user_id, **params):
        return self._record("get_user", user_id, **params)

    async def get_user_by_username(self, username, **params):
        return self._record("get_user_by_username", username, **params)

    async def get_me(self, **params):
        return self._record("get_me", **params)

    async def get_list_tweets(self, list_id, **params):
        return self._record("get_list_tweets", list_id, **params)

    async def get_users_tweets(self, user_id, **params):
        return self._record("get_users_tweets", user_id, **params)


@pytest.fixture
def client() -> FakeLookupClient:
    return FakeLookupClient()


@pytest.mark.asyncio
async def test_get_tweet_resolves_author_and_metrics(client, limiter) -> None:
    client.responses["get_tweet"] = ApiResponse(data=TWEET, includes={"users": [USER]})
    service = LookupService(client, limiter)

    tweet = await service.get_tweet("1")

    assert tweet is not None
    assert tweet.author_username == "cosmo"
    assert tweet.metrics.bookmarks == 5
    assert tweet.metrics.impressions == 100
    assert tweet.created_at.year == 2026
    _, args, params = client.calls[0]
    assert args == ("1",)
    assert "note_tweet" in params["tweet_fields"]
    assert params["expansions"] == ["author_id"]


@pytest.mark.asyncio
async def test_get_tweet_returns_none_when_missing(client, limiter) -> None:
    service = LookupService(client, limiter)

    assert await service.get_tweet("404") is None


@pytest.mark.asyncio
async def test_get_tweets_maps_every_item(client, limiter) -> None:
    client.responses["get_tweets"] = ApiResponse(
        data=[TWEET, {**TWEET, "id": "2", "author_id": "unknown"}],
        includes={"users": [USER]},
    )
    service = LookupService(client, limiter)

    tweets = await service.get_tweets(iter(["1", "2"]))

    assert [tweet.id for tweet in tweets] == ["1", "2"]
    assert tweets[1].author_username is None
    assert client.calls[0][1] == (["1", "2"],)


@pytest.mark.asyncio
async def test_user_lookups_map_profile(client, limiter) -> None:
    client.responses["get_user_by_username"] = ApiResponse(data=USER)
    client.responses["get_me"] = ApiResponse(data=USER)
    service = LookupService(client, limiter)

    user = await service.get_user_by_username("cosmo")
    me = await service.get_me()

    assert user.id == "u1"
    assert user.metrics.followers == 10
    assert me.username == "cosmo"
    assert await service.get_user("missing") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("requested, sent", [(1, 5), (10, 10), (500, 100)])
async def test_timelines_clamp_max_results(client, limiter, requested, sent) -> None:
    service = LookupService(client, limiter)

    await service.get_list_timeline("list-1", requested)
    await service.get_user_timeline("u1", requested)

    assert client.calls[0][2]["max_results"] == sent
    assert client.calls[1][2]["max_results"] == sent


@pytest.mark.asyncio
async def test_user_timeline_trims_to_requested_count(client, limiter) -> None:
    client.responses["get_users_tweets"] = ApiResponse(
        data=[{**TWEET, "id": str(i)} for i in range(5)]
    )
    service = LookupService(client, limiter)

    tweets = await service.get_user_timeline("u1", 2)

    assert [tweet.id for tweet in tweets] == ["0", "1"]
