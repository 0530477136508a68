from __future__ import annotations

import pytest

from cosmo_x.models import TweetData, TweetMetrics, UserData, UserMetrics
from cosmo_x.services.measure_service import MeasureService, bookmark_rate, rate_bookmarks


class FakeLookup:
    def __init__(self) -> None:
        self.tweets: dict[str, TweetData] = {}
        self.me: UserData | None = None
        self.timeline: list[TweetData] = []
        self.timeline_calls: list[tuple[str, int]] = []

    async def get_tweet(self, tweet_id):
        return self.tweets.get(tweet_id)

    async def get_me(self):
        return self.me

    async def get_user_timeline(self, user_id, max_results=10):
        self.timeline_calls.append((user_id, max_results))
        return self.timeline


def tweet(tweet_id: str, *, impressions: int, bookmarks: int, likes: int = 0, text: str = "post") -> TweetData:
    return TweetData(
        id=tweet_id,
        text=text,
        metrics=TweetMetrics(impressions=impressions, bookmarks=bookmarks, likes=likes),
    )


@pytest.mark.parametrize(
    "rate, rating",
    [
        (12.0, "exceptional"),
        (8.0, "exceptional"),
        (7.99, "good"),
        (5.0, "good"),
        (4.9, "ok"),
        (2.0, "ok"),
        (1.99, "failed"),
        (0.0, "failed"),
    ],
)
def test_rate_bookmarks_thresholds(rate, rating) -> None:
    assert rate_bookmarks(rate) == rating


def test_bookmark_rate_handles_zero_impressions() -> None:
    assert bookmark_rate(5, 0) == 0
    assert bookmark_rate(3, 200) == 1.5


@pytest.mark.asyncio
async def test_measure_article_rates_bookmarks() -> None:
    lookup = FakeLookup()
    lookup.tweets["1"] = tweet("1", impressions=300, bookmarks=19, likes=4, text="x" * 200)
    service = MeasureService(lookup)

    metrics = await service.measure_article("1")

    assert metrics is not None
    assert metrics.bookmark_rate == 6.33
    assert metrics.rating == "good"
    assert metrics.likes == 4
    assert len(metrics.text) == 120


@pytest.mark.asyncio
async def test_measure_article_zero_impressions_is_failed() -> None:
    lookup = FakeLookup()
    lookup.tweets["1"] = tweet("1", impressions=0, bookmarks=0)

    metrics = await MeasureService(lookup).measure_article("1")

    assert metrics.bookmark_rate == 0
    assert metrics.rating == "failed"


@pytest.mark.asyncio
async def test_measure_articles_skips_unmeasurable() -> None:
    lookup = FakeLookup()
    lookup.tweets["1"] = tweet("1", impressions=100, bookmarks=10)
    lookup.tweets["2"] = TweetData(id="2", text="no metrics")

    results = await MeasureService(lookup).measure_articles(["1", "2", "3"])

    assert [result.id for result in results] == ["1"]
    assert results[0].rating == "exceptional"


@pytest.mark.asyncio
async def test_pulse_check_aggregates_recent_posts() -> None:
    lookup = FakeLookup()
    lookup.me = UserData(id="u1", username="cosmo", metrics=UserMetrics(followers=10))
    lookup.timeline = [
        tweet("1", impressions=100, bookmarks=3, likes=2),
        tweet("2", impressions=300, bookmarks=5, likes=8),
        TweetData(id="3", text="no metrics"),
    ]

    pulse = await MeasureService(lookup).pulse_check(5)

    assert pulse is not None
    assert lookup.timeline_calls == [("u1", 5)]
    assert pulse.user.username == "cosmo"
    assert len(pulse.recent_posts) == 3
    assert pulse.total_impressions == 400
    assert pulse.total_bookmarks == 8
    assert pulse.total_likes == 10
    assert pulse.avg_bookmark_rate == 2.0


@pytest.mark.asyncio
async def test_pulse_check_without_user_returns_none() -> None:
    assert await MeasureService(FakeLookup()).pulse_check() is None
