"""
Domain specific exception hierarchy for the cosmo_x package.
"""

from __future__ import annotations

from typing import Mapping


class CosmoXError(Exception):
    """Base exception for all library errors."""


class ConfigurationError(CosmoXError):
    """Raised when required configuration or credentials are missing."""


class ApiResponseError(CosmoXError):
    """Raised when the X API returns an error payload."""

    def __init__(
        self,
        message: str,
        *,
        code: int | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class RateLimitExceeded(ApiResponseError):
    """Raised when the X API enforces a rate limit.

    ``headers`` carries the response headers when the transport exposes
    them; ``x-rate-limit-reset`` is the reset hint consulted by the retry
    executor.
    """

    def __init__(
        self,
        message: str,
        *,
        reset_at: int | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, status_code=429)
        self.reset_at = reset_at
        self.headers: Mapping[str, str] = dict(headers or {})


class RetryCancelled(CosmoXError):
    """Raised when a rate-limit wait is aborted through its cancel event."""


class SchedulerError(CosmoXError):
    """Raised when the scheduling service answers with a non-2xx status."""

    def __init__(self, method: str, path: str, status_code: int, body: str) -> None:
        super().__init__(f"Scheduler {method} {path}: {status_code} {body}")
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
