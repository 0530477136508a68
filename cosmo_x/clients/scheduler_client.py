"""
Typed async client for the post scheduling service.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx
from pydantic import BaseModel

from cosmo_x.config import ConfigManager, SchedulerSettings
from cosmo_x.exceptions import SchedulerError
from cosmo_x.models import (
    CancelRequest,
    CancelResult,
    HealthStatus,
    ScheduleBatchRequest,
    ScheduledPost,
    ScheduledStatus,
    SchedulePostRequest,
    ScheduleThreadRequest,
)

logger = logging.getLogger(__name__)


class SchedulerClient:
    """Client for the scheduling service HTTP API. No retry is applied here.

    An injected ``http`` client is pointed at ``settings.base_url``; its other
    options (timeout, transport, headers) are left as given.
    """

    def __init__(
        self,
        settings: SchedulerSettings,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.settings = settings
        if http is None:
            http = httpx.AsyncClient(base_url=settings.base_url, timeout=timeout)
        else:
            http.base_url = settings.base_url
        self._http = http

    @classmethod
    def from_config(cls, config: ConfigManager, **kwargs: Any) -> "SchedulerClient":
        """
        Build a client from ``SCHEDULER_*`` settings.

        Raises:
            ConfigurationError: when ``SCHEDULER_API_KEY`` is not set.
        """
        return cls(config.load_scheduler_settings(), **kwargs)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "SchedulerClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def health(self) -> HealthStatus:
        """Health check (no auth required)."""

        data = await self._request("GET", "/health", authenticated=False)
        return HealthStatus.model_validate(data)

    async def schedule(self, request: SchedulePostRequest) -> ScheduledPost:
        data = await self._request("POST", "/schedule", body=request)
        return ScheduledPost.model_validate(data)

    async def schedule_batch(
        self, request: ScheduleBatchRequest | Iterable[SchedulePostRequest]
    ) -> list[ScheduledPost]:
        if not isinstance(request, ScheduleBatchRequest):
            request = ScheduleBatchRequest(posts=list(request))
        data = await self._request("POST", "/schedule-batch", body=request)
        return [ScheduledPost.model_validate(item) for item in data]

    async def schedule_thread(self, request: ScheduleThreadRequest) -> list[ScheduledPost]:
        """Schedule a thread; the service chains each segment as a reply."""

        data = await self._request("POST", "/schedule-thread", body=request)
        return [ScheduledPost.model_validate(item) for item in data]

    async def list_posts(self, status: ScheduledStatus | None = None) -> list[ScheduledPost]:
        params = {"status": status} if status else None
        data = await self._request("GET", "/posts", params=params)
        return [ScheduledPost.model_validate(item) for item in data]

    async def cancel(self, request: CancelRequest) -> CancelResult:
        data = await self._request("POST", "/cancel", body=request)
        return CancelResult.model_validate(data)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        body: BaseModel | None = None,
        params: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> Any:
        headers = {"Content-Type": "application/json"}
        if authenticated:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"

        payload = body.model_dump(exclude_none=True) if body is not None else None
        logger.debug("Scheduler %s %s", method, path)
        response = await self._http.request(
            method, path, headers=headers, params=params, json=payload
        )

        if response.is_error:
            raise SchedulerError(method, path, response.status_code, response.text)
        return response.json()
