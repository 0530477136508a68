"""
Engagement actions (likes, reposts, follows) on behalf of the authenticated user.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from cosmo_x.models import ApiResponse, FollowResult, LikeResult, RepostResult
from cosmo_x.rate_limit import RateLimiter, default_rate_limiter


class EngageClient(Protocol):
    """Protocol subset consumed by the service."""

    async def like(self, tweet_id: str) -> ApiResponse:
        ...

    async def unlike(self, tweet_id: str) -> ApiResponse:
        ...

    async def retweet(self, tweet_id: str) -> ApiResponse:
        ...

    async def unretweet(self, source_tweet_id: str) -> ApiResponse:
        ...

    async def follow_user(self, target_user_id: str) -> ApiResponse:
        ...

    async def unfollow_user(self, target_user_id: str) -> ApiResponse:
        ...


@dataclass(slots=True)
class EngageService:
    """
    Like/repost/follow and their inverses.

    The acting user is the one the client's access token belongs to. Each
    method reports whether the API confirmed the requested end state.
    """

    client: EngageClient
    rate_limiter: RateLimiter = field(default_factory=default_rate_limiter)

    async def like(self, tweet_id: str) -> bool:
        response = await self.rate_limiter.call(
            "engage.like", lambda: self.client.like(tweet_id)
        )
        return bool(LikeResult.model_validate(response.data or {}).liked)

    async def unlike(self, tweet_id: str) -> bool:
        response = await self.rate_limiter.call(
            "engage.unlike", lambda: self.client.unlike(tweet_id)
        )
        return LikeResult.model_validate(response.data or {}).liked is False

    async def repost(self, tweet_id: str) -> bool:
        response = await self.rate_limiter.call(
            "engage.repost", lambda: self.client.retweet(tweet_id)
        )
        return bool(RepostResult.model_validate(response.data or {}).retweeted)

    async def unrepost(self, tweet_id: str) -> bool:
        response = await self.rate_limiter.call(
            "engage.unrepost", lambda: self.client.unretweet(tweet_id)
        )
        return RepostResult.model_validate(response.data or {}).retweeted is False

    async def follow(self, target_user_id: str) -> bool:
        response = await self.rate_limiter.call(
            "engage.follow", lambda: self.client.follow_user(target_user_id)
        )
        return bool(FollowResult.model_validate(response.data or {}).following)

    async def unfollow(self, target_user_id: str) -> bool:
        response = await self.rate_limiter.call(
            "engage.unfollow", lambda: self.client.unfollow_user(target_user_id)
        )
        return FollowResult.model_validate(response.data or {}).following is False
