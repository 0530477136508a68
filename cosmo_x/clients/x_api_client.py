"""
Thin wrapper around tweepy.asynchronous.AsyncClient presenting a consistent interface.

Every method returns an ``ApiResponse`` envelope (``data``/``includes``/
``meta``/``errors``). tweepy exceptions are converted into domain
exceptions; ``TooManyRequests`` becomes ``RateLimitExceeded`` with the
response headers attached so the retry executor can honour
``x-rate-limit-reset``.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from tweepy.asynchronous import AsyncClient
from tweepy.errors import TooManyRequests, TweepyException

from cosmo_x.exceptions import ApiResponseError, RateLimitExceeded
from cosmo_x.models import ApiResponse

logger = logging.getLogger(__name__)


class XApiClient:
    """Wrapper that converts tweepy exceptions into domain exceptions.

    ``user_auth`` selects OAuth 1.0a user context (True) or the app-only
    bearer token (False) for every request made through this wrapper. The
    acting user of ``like``/``retweet``/``follow_user`` and their inverses
    is resolved by tweepy from the access token.
    """

    def __init__(self, client: AsyncClient, *, user_auth: bool = True) -> None:
        self._client = client
        self.user_auth = user_auth

    async def aclose(self) -> None:
        session = getattr(self._client, "session", None)
        if session is not None:
            await session.close()

    async def __aenter__(self) -> "XApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # -- posts -------------------------------------------------------------

    async def create_tweet(
        self,
        *,
        text: str,
        in_reply_to_tweet_id: str | None = None,
        quote_tweet_id: str | None = None,
        media_ids: Iterable[str] | None = None,
    ) -> ApiResponse:
        return await self._invoke(
            "create_tweet",
            text=text,
            in_reply_to_tweet_id=in_reply_to_tweet_id,
            quote_tweet_id=quote_tweet_id,
            media_ids=[str(media_id) for media_id in media_ids] if media_ids else None,
        )

    async def delete_tweet(self, tweet_id: str) -> ApiResponse:
        return await self._invoke("delete_tweet", tweet_id)

    async def get_tweet(self, tweet_id: str, **params: Any) -> ApiResponse:
        return await self._invoke("get_tweet", tweet_id, **params)

    async def get_tweets(self, ids: Iterable[str], **params: Any) -> ApiResponse:
        return await self._invoke("get_tweets", list(ids), **params)

    async def search_recent_tweets(self, query: str, **params: Any) -> ApiResponse:
        return await self._invoke("search_recent_tweets", query, **params)

    # -- users -------------------------------------------------------------

    async def get_user(self, user_id: str, **params: Any) -> ApiResponse:
        return await self._invoke("get_user", id=user_id, **params)

    async def get_user_by_username(self, username: str, **params: Any) -> ApiResponse:
        return await self._invoke("get_user", username=username, **params)

    async def get_me(self, **params: Any) -> ApiResponse:
        return await self._invoke("get_me", **params)

    async def get_users_tweets(self, user_id: str, **params: Any) -> ApiResponse:
        return await self._invoke("get_users_tweets", user_id, **params)

    async def get_list_tweets(self, list_id: str, **params: Any) -> ApiResponse:
        return await self._invoke("get_list_tweets", list_id, **params)

    # -- engagement --------------------------------------------------------

    async def like(self, tweet_id: str) -> ApiResponse:
        return await self._invoke("like", tweet_id)

    async def unlike(self, tweet_id: str) -> ApiResponse:
        return await self._invoke("unlike", tweet_id)

    async def retweet(self, tweet_id: str) -> ApiResponse:
        return await self._invoke("retweet", tweet_id)

    async def unretweet(self, source_tweet_id: str) -> ApiResponse:
        return await self._invoke("unretweet", source_tweet_id)

    async def follow_user(self, target_user_id: str) -> ApiResponse:
        return await self._invoke("follow_user", target_user_id)

    async def unfollow_user(self, target_user_id: str) -> ApiResponse:
        return await self._invoke("unfollow_user", target_user_id)

    # -- plumbing ----------------------------------------------------------

    async def _invoke(self, method_name: str, *args: Any, **kwargs: Any) -> ApiResponse:
        method = getattr(self._client, method_name, None)
        if method is None:
            raise AttributeError(f"tweepy AsyncClient has no attribute '{method_name}'.")

        params = {key: value for key, value in kwargs.items() if value is not None}
        params["user_auth"] = self.user_auth
        logger.debug("X API %s (user_auth=%s)", method_name, self.user_auth)

        try:
            result = await method(*args, **params)
        except TweepyException as exc:
            raise self._convert_exception(exc) from exc
        return ApiResponse.model_validate(result or {})

    def _convert_exception(self, exc: TweepyException) -> ApiResponseError:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None) or getattr(response, "status", None)
        if status is None:
            return ApiResponseError(str(exc) or "Unhandled tweepy exception.")

        message = f"HTTP {status}: {getattr(response, 'reason', None) or 'Unknown'}"

        if isinstance(exc, TooManyRequests):
            headers = getattr(response, "headers", None) or {}
            return RateLimitExceeded(
                message,
                reset_at=self._extract_reset_at(headers),
                headers=dict(headers),
            )

        api_messages = getattr(exc, "api_messages", None)
        if api_messages:
            message = f"{message} ({api_messages[0]})"
        api_codes = getattr(exc, "api_codes", None)
        code: int | None = api_codes[0] if api_codes else None
        return ApiResponseError(message, code=code, status_code=status)

    @staticmethod
    def _extract_reset_at(headers: Mapping[str, str]) -> int | None:
        reset_value = headers.get("x-rate-limit-reset") or headers.get(
            "X-Rate-Limit-Reset"
        )
        if reset_value is None:
            return None

        try:
            return int(reset_value)
        except (TypeError, ValueError):
            return None
