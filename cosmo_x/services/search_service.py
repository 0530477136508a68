"""
Recent search with rate-limit-aware pagination.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Literal, Protocol

from cosmo_x.models import ApiResponse, SearchResponse, TweetData
from cosmo_x.rate_limit import RateLimiter, default_rate_limiter
from cosmo_x.services.lookup_service import AUTHOR_FIELDS, TWEET_FIELDS, tweets_from_response

SEARCH_MAX_RESULTS = 100

SortOrder = Literal["recency", "relevancy"]


class SearchClient(Protocol):
    """Protocol subset consumed by the service."""

    async def search_recent_tweets(self, query: str, **params: Any) -> ApiResponse:
        ...


@dataclass(slots=True)
class SearchService:
    """Keyword search over the last seven days of posts."""

    client: SearchClient
    rate_limiter: RateLimiter = field(default_factory=default_rate_limiter)

    async def search_recent(
        self,
        query: str,
        *,
        max_results: int = 10,
        max_pages: int = 1,
        start_time: datetime | str | None = None,
        end_time: datetime | str | None = None,
        sort_order: SortOrder | None = None,
    ) -> SearchResponse:
        """
        Search recent posts, following pagination for up to ``max_pages`` pages.

        Returns:
            SearchResponse with accumulated results, the token of the next
            unfetched page (if any) and the number of pages fetched.
        """
        results: list[TweetData] = []
        next_token: str | None = None
        pages = 0

        for _ in range(max_pages):
            response = await self._fetch_page(
                query,
                per_page=min(max_results, SEARCH_MAX_RESULTS),
                next_token=next_token,
                start_time=start_time,
                end_time=end_time,
                sort_order=sort_order,
            )
            pages += 1
            results.extend(tweets_from_response(response))

            next_token = response.next_token
            if not next_token:
                break

        return SearchResponse(results=results, next_token=next_token, total_pages=pages)

    async def iterate(
        self,
        query: str,
        *,
        per_page: int = 10,
        max_pages: int | None = None,
    ) -> AsyncIterator[TweetData]:
        """
        Yield matching posts page by page until the results run out.

        Example:
            >>> async for tweet in service.iterate("python -is:retweet"):
            ...     print(tweet.id)
        """
        next_token: str | None = None
        pages = 0

        while max_pages is None or pages < max_pages:
            response = await self._fetch_page(
                query, per_page=min(per_page, SEARCH_MAX_RESULTS), next_token=next_token
            )
            pages += 1
            for tweet in tweets_from_response(response):
                yield tweet

            next_token = response.next_token
            if not next_token:
                return

    async def _fetch_page(
        self,
        query: str,
        *,
        per_page: int,
        next_token: str | None = None,
        **filters: Any,
    ) -> ApiResponse:
        params: dict[str, Any] = {
            "max_results": per_page,
            "tweet_fields": TWEET_FIELDS,
            "expansions": ["author_id"],
            "user_fields": AUTHOR_FIELDS,
            "next_token": next_token,
            **filters,
        }
        return await self.rate_limiter.call(
            "search", lambda: self.client.search_recent_tweets(query, **params)
        )
