"""
Pydantic models for X API responses and scheduler payloads used by cosmo_x.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

BookmarkRating = Literal["exceptional", "good", "ok", "failed"]
ScheduledStatus = Literal["pending", "posted", "failed", "cancelled"]


def _to_mapping(payload: Any) -> Mapping[str, Any]:
    if isinstance(payload, Mapping):
        return payload
    if hasattr(payload, "data"):
        return _to_mapping(payload.data)
    if hasattr(payload, "__dict__"):
        return _to_mapping(vars(payload))
    raise TypeError(f"Cannot convert payload of type {type(payload)!r} to mapping.")


class ApiResponse(BaseModel):
    """Envelope returned by every X API v2 call."""

    data: Any = None
    includes: dict[str, Any] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)
    errors: list[dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    def included_users(self) -> dict[str, Mapping[str, Any]]:
        """Expanded users keyed by id."""

        users = self.includes.get("users") or []
        return {str(user["id"]): user for user in users if "id" in user}

    @property
    def next_token(self) -> str | None:
        return self.meta.get("next_token")


class TweetMetrics(BaseModel):
    likes: int = 0
    retweets: int = 0
    replies: int = 0
    quotes: int = 0
    bookmarks: int = 0
    impressions: int = 0

    @classmethod
    def from_public_metrics(cls, metrics: Mapping[str, Any]) -> "TweetMetrics":
        return cls(
            likes=metrics.get("like_count") or 0,
            retweets=metrics.get("retweet_count") or 0,
            replies=metrics.get("reply_count") or 0,
            quotes=metrics.get("quote_count") or 0,
            bookmarks=metrics.get("bookmark_count") or 0,
            impressions=metrics.get("impression_count") or 0,
        )


class TweetData(BaseModel):
    """Normalized representation of a tweet."""

    id: str
    text: str = ""
    author_id: str | None = None
    author_username: str | None = None
    created_at: datetime | None = None
    metrics: TweetMetrics | None = None

    @classmethod
    def from_api(
        cls,
        payload: Any,
        users: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> "TweetData":
        data = _to_mapping(payload)
        author_id = data.get("author_id")
        author = (users or {}).get(str(author_id)) if author_id else None
        public_metrics = data.get("public_metrics")
        return cls(
            id=str(data.get("id") or ""),
            text=data.get("text") or "",
            author_id=author_id,
            author_username=author.get("username") if author else None,
            created_at=data.get("created_at"),
            metrics=TweetMetrics.from_public_metrics(public_metrics) if public_metrics else None,
        )


class UserMetrics(BaseModel):
    followers: int = 0
    following: int = 0
    tweets: int = 0
    listed: int = 0
    likes: int = 0

    @classmethod
    def from_public_metrics(cls, metrics: Mapping[str, Any]) -> "UserMetrics":
        return cls(
            followers=metrics.get("followers_count") or 0,
            following=metrics.get("following_count") or 0,
            tweets=metrics.get("tweet_count") or 0,
            listed=metrics.get("listed_count") or 0,
            likes=metrics.get("like_count") or 0,
        )


class UserData(BaseModel):
    """Normalized representation of a user profile."""

    id: str
    name: str = ""
    username: str = ""
    description: str | None = None
    created_at: datetime | None = None
    profile_image_url: str | None = None
    metrics: UserMetrics | None = None

    @classmethod
    def from_api(cls, payload: Any) -> "UserData":
        data = _to_mapping(payload)
        public_metrics = data.get("public_metrics")
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            username=data.get("username") or "",
            description=data.get("description"),
            created_at=data.get("created_at"),
            profile_image_url=data.get("profile_image_url"),
            metrics=UserMetrics.from_public_metrics(public_metrics) if public_metrics else None,
        )


class PostResult(BaseModel):
    """Outcome of a create post call."""

    id: str = ""
    text: str | None = None

    @classmethod
    def from_api(cls, payload: Any) -> "PostResult":
        data = _to_mapping(payload) if payload is not None else {}
        return cls(id=str(data.get("id") or ""), text=data.get("text"))


class PostDeleteResult(BaseModel):
    deleted: bool = False


class LikeResult(BaseModel):
    liked: bool | None = None


class RepostResult(BaseModel):
    retweeted: bool | None = None


class FollowResult(BaseModel):
    following: bool | None = None
    pending_follow: bool | None = None


class SearchResponse(BaseModel):
    """Accumulated results of a paginated recent search."""

    results: list[TweetData] = Field(default_factory=list)
    next_token: str | None = None
    total_pages: int = 0


class ArticleMetrics(BaseModel):
    """Engagement summary of a single post, rated by bookmark rate."""

    id: str
    text: str
    impressions: int
    bookmarks: int
    likes: int
    retweets: int
    replies: int
    quotes: int
    bookmark_rate: float = Field(..., description="bookmarks / impressions * 100")
    rating: BookmarkRating


class PulseCheckResult(BaseModel):
    """Account state plus aggregate performance of recent posts."""

    user: UserData
    recent_posts: list[TweetData]
    total_impressions: int
    total_bookmarks: int
    total_likes: int
    avg_bookmark_rate: float


# ============================================================================
# Scheduler
# ============================================================================


class SchedulePostRequest(BaseModel):
    """Request schema for scheduling a single post."""

    text: str = Field(..., min_length=1)
    scheduled_time: str = Field(..., description="Publication time (ISO 8601)")
    reply_to_tweet_id: str | None = None

    @field_validator("scheduled_time", mode="before")
    @classmethod
    def format_scheduled_time(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value


class ScheduleBatchRequest(BaseModel):
    posts: list[SchedulePostRequest] = Field(..., min_length=1)


class ThreadSegment(BaseModel):
    text: str = Field(..., min_length=1)
    scheduled_time: str

    @field_validator("scheduled_time", mode="before")
    @classmethod
    def format_scheduled_time(cls, value: Any) -> Any:
        if isinstance(value, datetime):
            return value.isoformat()
        return value


class ScheduleThreadRequest(BaseModel):
    """Request schema for scheduling a thread of chained replies."""

    thread_id: str | None = None
    posts: list[ThreadSegment] = Field(..., min_length=1)
    delay_seconds: int | None = Field(None, ge=0)


class ScheduledPost(BaseModel):
    """A post as stored by the scheduling service."""

    id: str
    text: str
    scheduled_time: str
    status: ScheduledStatus
    tweet_id: str | None = None
    reply_to_tweet_id: str | None = None
    thread_id: str | None = None
    created_at: str | None = None

    model_config = ConfigDict(extra="allow")

    @field_validator("id", "tweet_id", "thread_id", "reply_to_tweet_id", mode="before")
    @classmethod
    def coerce_ids(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        return value


class CancelRequest(BaseModel):
    """Cancel a single pending post or a whole thread."""

    post_id: str | None = None
    thread_id: str | None = None

    @model_validator(mode="after")
    def require_target(self) -> "CancelRequest":
        if not self.post_id and not self.thread_id:
            raise ValueError("post_id or thread_id is required")
        return self


class CancelResult(BaseModel):
    cancelled: bool


class HealthStatus(BaseModel):
    status: str

    model_config = ConfigDict(extra="allow")
