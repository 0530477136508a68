"""
Post related workflows built on top of client adapters.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Protocol, Sequence

from cosmo_x.models import ApiResponse, PostDeleteResult, PostResult
from cosmo_x.rate_limit import RateLimiter, SleepStrategy, default_rate_limiter

logger = logging.getLogger(__name__)


class PostClient(Protocol):
    """Protocol subset consumed by the service."""

    async def create_tweet(self, **kwargs: Any) -> ApiResponse:
        ...

    async def delete_tweet(self, tweet_id: str) -> ApiResponse:
        ...


@dataclass(slots=True)
class PostService:
    """High level orchestration for creating and deleting posts."""

    client: PostClient
    rate_limiter: RateLimiter = field(default_factory=default_rate_limiter)
    sleep: SleepStrategy = field(default=asyncio.sleep)

    async def create_post(
        self,
        text: str,
        *,
        reply_to: str | None = None,
        quote_tweet_id: str | None = None,
        media_ids: Iterable[str] | None = None,
    ) -> PostResult:
        """Create a post. Supports plain posts, replies, quotes and media."""

        payload: dict[str, Any] = {"text": text}
        if reply_to:
            payload["in_reply_to_tweet_id"] = reply_to
        if quote_tweet_id:
            payload["quote_tweet_id"] = quote_tweet_id
        if media_ids:
            payload["media_ids"] = list(media_ids)

        response = await self.rate_limiter.call(
            "post.create", lambda: self.client.create_tweet(**payload)
        )
        return PostResult.from_api(response.data)

    async def reply(self, tweet_id: str, text: str) -> PostResult:
        return await self.create_post(text, reply_to=tweet_id)

    async def delete_post(self, tweet_id: str) -> bool:
        response = await self.rate_limiter.call(
            "post.delete", lambda: self.client.delete_tweet(tweet_id)
        )
        if not response.data:
            return False
        return PostDeleteResult.model_validate(response.data).deleted

    async def post_thread(
        self,
        texts: Sequence[str],
        *,
        delay: float = 1.0,
    ) -> list[PostResult]:
        """
        Post ``texts`` as a thread, each segment replying to the previous one.

        Args:
            texts: Segment texts in publication order
            delay: Seconds to pause between segments (not after the last)

        Returns:
            The created posts in order.
        """
        results: list[PostResult] = []
        previous_id: str | None = None

        for index, text in enumerate(texts):
            result = await self.create_post(text, reply_to=previous_id)
            results.append(result)
            previous_id = result.id
            logger.info("Thread segment %d/%d posted: %s", index + 1, len(texts), result.id)

            if delay > 0 and index < len(texts) - 1:
                await self.sleep(delay)

        return results
