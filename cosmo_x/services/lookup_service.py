"""
Tweet and user lookup workflows, including list and user timelines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol

from cosmo_x.models import ApiResponse, TweetData, UserData
from cosmo_x.rate_limit import RateLimiter, default_rate_limiter

TWEET_FIELDS = ["created_at", "public_metrics", "author_id"]
USER_FIELDS = ["public_metrics", "description", "created_at", "profile_image_url"]
AUTHOR_FIELDS = ["username", "public_metrics"]

# The timeline endpoints reject max_results outside this window.
TIMELINE_MIN_RESULTS = 5
TIMELINE_MAX_RESULTS = 100


class LookupClient(Protocol):
    """Protocol subset consumed by the service."""

    async def get_tweet(self, tweet_id: str, **params: Any) -> ApiResponse:
        ...

    async def get_tweets(self, ids: Iterable[str], **params: Any) -> ApiResponse:
        ...

    async def get_user(self, user_id: str, **params: Any) -> ApiResponse:
        ...

    async def get_user_by_username(self, username: str, **params: Any) -> ApiResponse:
        ...

    async def get_me(self, **params: Any) -> ApiResponse:
        ...

    async def get_list_tweets(self, list_id: str, **params: Any) -> ApiResponse:
        ...

    async def get_users_tweets(self, user_id: str, **params: Any) -> ApiResponse:
        ...


def _clamp_timeline(max_results: int) -> int:
    return max(TIMELINE_MIN_RESULTS, min(max_results, TIMELINE_MAX_RESULTS))


def tweets_from_response(response: ApiResponse) -> list[TweetData]:
    """Map a list-valued response to tweets, resolving expanded authors."""

    users = response.included_users()
    return [TweetData.from_api(item, users) for item in response.data or []]


@dataclass(slots=True)
class LookupService:
    """Read-only lookups of tweets, users and timelines."""

    client: LookupClient
    rate_limiter: RateLimiter = field(default_factory=default_rate_limiter)

    async def get_tweet(self, tweet_id: str) -> TweetData | None:
        """Look up a single tweet with full metrics; None when it does not exist."""

        response = await self.rate_limiter.call(
            "tweet.get",
            lambda: self.client.get_tweet(
                tweet_id,
                tweet_fields=[*TWEET_FIELDS, "note_tweet"],
                expansions=["author_id"],
                user_fields=AUTHOR_FIELDS,
            ),
        )
        if not response.data:
            return None
        return TweetData.from_api(response.data, response.included_users())

    async def get_tweets(self, tweet_ids: Iterable[str]) -> list[TweetData]:
        ids = list(tweet_ids)
        response = await self.rate_limiter.call(
            "tweet.getMany",
            lambda: self.client.get_tweets(
                ids,
                tweet_fields=TWEET_FIELDS,
                expansions=["author_id"],
                user_fields=["username"],
            ),
        )
        return tweets_from_response(response)

    async def get_user(self, user_id: str) -> UserData | None:
        response = await self.rate_limiter.call(
            "user.get", lambda: self.client.get_user(user_id, user_fields=USER_FIELDS)
        )
        return UserData.from_api(response.data) if response.data else None

    async def get_user_by_username(self, username: str) -> UserData | None:
        response = await self.rate_limiter.call(
            "user.getByUsername",
            lambda: self.client.get_user_by_username(username, user_fields=USER_FIELDS),
        )
        return UserData.from_api(response.data) if response.data else None

    async def get_me(self) -> UserData | None:
        """Profile of the authenticated user (requires user context auth)."""

        response = await self.rate_limiter.call(
            "user.me", lambda: self.client.get_me(user_fields=USER_FIELDS)
        )
        return UserData.from_api(response.data) if response.data else None

    async def get_list_timeline(self, list_id: str, max_results: int = 10) -> list[TweetData]:
        response = await self.rate_limiter.call(
            "list.timeline",
            lambda: self.client.get_list_tweets(
                list_id,
                max_results=_clamp_timeline(max_results),
                tweet_fields=TWEET_FIELDS,
                expansions=["author_id"],
                user_fields=AUTHOR_FIELDS,
            ),
        )
        return tweets_from_response(response)

    async def get_user_timeline(self, user_id: str, max_results: int = 10) -> list[TweetData]:
        """A user's own recent posts, trimmed to ``max_results``."""

        response = await self.rate_limiter.call(
            "user.timeline",
            lambda: self.client.get_users_tweets(
                user_id,
                max_results=_clamp_timeline(max_results),
                tweet_fields=["created_at", "public_metrics"],
            ),
        )
        return tweets_from_response(response)[: max(max_results, 0)]
