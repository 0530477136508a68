"""
Engagement metrics derived from lookups: bookmark rate and pulse check.

Bookmark rate benchmark:
    8%+   exceptional
    5-8%  good
    2-5%  ok
    <2%   failed
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from cosmo_x.models import ArticleMetrics, BookmarkRating, PulseCheckResult
from cosmo_x.services.lookup_service import LookupService

TEXT_PREVIEW_LENGTH = 120


def bookmark_rate(bookmarks: int, impressions: int) -> float:
    """Bookmarks per impression as a percentage; 0 when nothing was seen."""

    if impressions <= 0:
        return 0.0
    return bookmarks / impressions * 100


def rate_bookmarks(rate: float) -> BookmarkRating:
    if rate >= 8:
        return "exceptional"
    if rate >= 5:
        return "good"
    if rate >= 2:
        return "ok"
    return "failed"


@dataclass(slots=True)
class MeasureService:
    """Computes article and account level metrics on top of ``LookupService``."""

    lookup: LookupService

    async def measure_article(self, tweet_id: str) -> ArticleMetrics | None:
        """Full metrics for a post plus its bookmark rate rating."""

        tweet = await self.lookup.get_tweet(tweet_id)
        if tweet is None or tweet.metrics is None:
            return None

        metrics = tweet.metrics
        rate = bookmark_rate(metrics.bookmarks, metrics.impressions)
        return ArticleMetrics(
            id=tweet.id,
            text=tweet.text[:TEXT_PREVIEW_LENGTH],
            impressions=metrics.impressions,
            bookmarks=metrics.bookmarks,
            likes=metrics.likes,
            retweets=metrics.retweets,
            replies=metrics.replies,
            quotes=metrics.quotes,
            bookmark_rate=round(rate, 2),
            rating=rate_bookmarks(rate),
        )

    async def measure_articles(self, tweet_ids: Iterable[str]) -> list[ArticleMetrics]:
        """Measure posts sequentially, skipping any without metrics."""

        results: list[ArticleMetrics] = []
        for tweet_id in tweet_ids:
            measured = await self.measure_article(tweet_id)
            if measured is not None:
                results.append(measured)
        return results

    async def pulse_check(self, post_count: int = 10) -> PulseCheckResult | None:
        """Current account state plus recent post performance."""

        user = await self.lookup.get_me()
        if user is None:
            return None

        recent_posts = await self.lookup.get_user_timeline(user.id, post_count)
        measured = [post.metrics for post in recent_posts if post.metrics is not None]
        total_impressions = sum(m.impressions for m in measured)
        total_bookmarks = sum(m.bookmarks for m in measured)
        total_likes = sum(m.likes for m in measured)

        return PulseCheckResult(
            user=user,
            recent_posts=recent_posts,
            total_impressions=total_impressions,
            total_bookmarks=total_bookmarks,
            total_likes=total_likes,
            avg_bookmark_rate=round(bookmark_rate(total_bookmarks, total_impressions), 2),
        )
