"""
Rate limiting utilities and retry/backoff helpers.

The X API answers exhausted windows with HTTP 429. ``RateLimiter`` wraps a
remote call, remembers which endpoint labels are exhausted, waits before
calling a label that is known to be exhausted and retries 429 failures with
exponential backoff (or the server supplied reset hint when one is
available).

Reset hints are only available when the transport attaches response headers
to the raised ``RateLimitExceeded``. ``XApiClient`` does; errors raised by
other layers fall back to exponential backoff.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import math
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Mapping, Protocol, TypeVar

from cosmo_x.exceptions import RateLimitExceeded, RetryCancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

RESET_HEADER = "x-rate-limit-reset"


class SleepStrategy(Protocol):
    """Strategy responsible for sleeping/backing off."""

    def __call__(self, seconds: float) -> Awaitable[None]:
        ...


@dataclass(slots=True, frozen=True)
class RateLimitState:
    """Last known rate limit state of a single endpoint label."""

    endpoint: str
    remaining: int
    reset_at: float
    last_hit: float

    @classmethod
    def healthy(cls, endpoint: str, now: float) -> "RateLimitState":
        return cls(endpoint=endpoint, remaining=1, reset_at=0.0, last_hit=now)

    @classmethod
    def exhausted(cls, endpoint: str, reset_at: float, now: float) -> "RateLimitState":
        return cls(endpoint=endpoint, remaining=0, reset_at=reset_at, last_hit=now)

    def is_exhausted(self, now: float) -> bool:
        return self.remaining == 0 and self.reset_at > now


class RateLimitStore:
    """In-memory mapping of endpoint label to its last known state.

    Entries live for the lifetime of the store. A label without an entry is
    treated as healthy.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._states: dict[str, RateLimitState] = {}
        self.clock = clock

    def get(self, endpoint: str) -> RateLimitState | None:
        return self._states.get(endpoint)

    def set(self, state: RateLimitState) -> None:
        self._states[state.endpoint] = state

    def is_limited(self, endpoint: str) -> bool:
        state = self._states.get(endpoint)
        return state is not None and state.is_exhausted(self.clock())

    def labels(self) -> list[str]:
        return list(self._states)

    def __contains__(self, endpoint: object) -> bool:
        return endpoint in self._states

    def __len__(self) -> int:
        return len(self._states)


def compute_wait(
    hint_seconds: float | None,
    attempt: int,
    base_delay: float,
    *,
    hint_buffer: float = 1.0,
) -> float:
    """
    Compute how long to wait after a rate limited attempt.

    Args:
        hint_seconds: Seconds until the server reported reset, if known
        attempt: Zero-based attempt index
        base_delay: Backoff delay for the first retry, in seconds
        hint_buffer: Extra seconds added on top of a server hint

    Returns:
        ``hint_seconds + hint_buffer`` for a positive hint, otherwise
        ``base_delay * 2 ** attempt``.
    """
    if hint_seconds is not None and hint_seconds > 0:
        return hint_seconds + hint_buffer
    return base_delay * (2**attempt)


@dataclass(slots=True)
class RetryConfig:
    """
    Configuration for 429 retries.

    Attributes:
        max_retries: Retries after the first attempt (default: 3)
        base_delay: Backoff in seconds when no reset hint is known (default: 15.0)
        pre_wait_buffer: Seconds added to a pre-wait for a known reset (default: 0.5)
        hint_buffer: Seconds added to a server supplied reset hint (default: 1.0)
    """

    max_retries: int = 3
    base_delay: float = 15.0
    pre_wait_buffer: float = 0.5
    hint_buffer: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be a non-negative integer")
        if self.base_delay <= 0:
            raise ValueError("base_delay must be positive")
        if self.pre_wait_buffer < 0 or self.hint_buffer < 0:
            raise ValueError("buffers must not be negative")

    def calculate_delay(self, attempt: int, hint_seconds: float | None = None) -> float:
        return compute_wait(
            hint_seconds, attempt, self.base_delay, hint_buffer=self.hint_buffer
        )


def is_rate_limited(error: object) -> bool:
    """Return True when ``error`` represents an HTTP 429 rejection."""

    if isinstance(error, RateLimitExceeded):
        return True
    if not isinstance(error, BaseException):
        return False
    message = str(error)
    return "429" in message or "Too Many Requests" in message


def extract_reset_hint_seconds(error: object, *, now: float | None = None) -> float | None:
    """
    Return seconds until the rate limit window resets, if ``error`` says so.

    Only ``RateLimitExceeded`` carries reset metadata. The ``x-rate-limit-reset``
    header (unix seconds) wins over ``reset_at``. Returns None when neither is
    present or parseable.
    """
    if not isinstance(error, RateLimitExceeded):
        return None

    reset_at = _parse_reset(_header(error.headers, RESET_HEADER))
    if reset_at is None:
        reset_at = _parse_reset(error.reset_at)
    if reset_at is None:
        return None

    current = time.time() if now is None else now
    return max(0.0, reset_at - current)


def _header(headers: Mapping[str, str], name: str) -> str | None:
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _parse_reset(value: Any) -> int | None:
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class RateLimiter:
    """Executes remote calls with per-endpoint 429 tracking and retry.

    Several limiters may share one ``store``. Without an explicit ``clock``
    the limiter reads time from the store's clock; with both given, the
    limiter's clock governs its own pre-wait and ``is_limited`` decisions.
    """

    def __init__(
        self,
        config: RetryConfig | None = None,
        *,
        store: RateLimitStore | None = None,
        sleep: SleepStrategy = asyncio.sleep,
        clock: Callable[[], float] | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> None:
        if store is None:
            store = RateLimitStore(clock=clock or time.time)
        self.config = config or RetryConfig()
        self.store = store
        self.sleep = sleep
        self.clock = clock or store.clock
        self.cancel_event = cancel_event

    async def call(
        self,
        endpoint: str,
        fn: Callable[[], Awaitable[T]],
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> T:
        """
        Execute ``fn`` with automatic 429 retry.

        Args:
            endpoint: Label used for tracking (e.g. "search", "post.create")
            fn: Zero-argument coroutine function performing one attempt
            cancel_event: Aborts pending waits with ``RetryCancelled`` when set

        Returns:
            Whatever ``fn`` returns on its first successful attempt.

        Raises:
            The last rate limit error once ``max_retries`` is spent, or any
            other error from ``fn`` unchanged on first occurrence.
        """
        if not endpoint:
            raise ValueError("endpoint label must be a non-empty string")

        event = cancel_event if cancel_event is not None else self.cancel_event
        config = self.config

        state = self.store.get(endpoint)
        now = self.clock()
        if state is not None and state.is_exhausted(now):
            wait_seconds = state.reset_at - now + config.pre_wait_buffer
            logger.info(
                "[rate] %s: pre-waiting %ds until reset", endpoint, math.ceil(wait_seconds)
            )
            await self.wait(wait_seconds, event)

        attempt = 0
        while True:
            try:
                result = await fn()
            except Exception as exc:
                if not is_rate_limited(exc):
                    raise

                now = self.clock()
                hint = extract_reset_hint_seconds(exc, now=now)
                wait_seconds = config.calculate_delay(attempt, hint)
                self.store.set(RateLimitState.exhausted(endpoint, now + wait_seconds, now))

                if attempt >= config.max_retries:
                    raise

                logger.warning(
                    "[rate] %s: 429 hit, retry %d/%d in %ds",
                    endpoint,
                    attempt + 1,
                    config.max_retries,
                    math.ceil(wait_seconds),
                )
                await self.wait(wait_seconds, event, cause=exc)
                attempt += 1
                continue

            self.store.set(RateLimitState.healthy(endpoint, self.clock()))
            return result

    execute = call

    async def wait(
        self,
        seconds: float,
        cancel_event: asyncio.Event | None = None,
        *,
        cause: BaseException | None = None,
    ) -> None:
        """Suspend for ``seconds``; abort early when ``cancel_event`` is set."""

        if cancel_event is None:
            await self.sleep(seconds)
            return

        if cancel_event.is_set():
            raise RetryCancelled("Rate limit wait cancelled.") from cause

        sleeper = asyncio.ensure_future(self.sleep(seconds))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for task in (sleeper, waiter):
                if not task.done():
                    task.cancel()

        if waiter in done:
            raise RetryCancelled("Rate limit wait cancelled.") from cause

    def get_state(self, endpoint: str) -> RateLimitState | None:
        return self.store.get(endpoint)

    def is_limited(self, endpoint: str) -> bool:
        state = self.store.get(endpoint)
        return state is not None and state.is_exhausted(self.clock())


@functools.lru_cache(maxsize=None)
def default_rate_limiter() -> RateLimiter:
    """Process-wide limiter used when a caller does not supply one."""

    return RateLimiter()


def rate_limited(
    endpoint: str, limiter: RateLimiter | None = None
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """
    Decorator routing every call of an async function through a ``RateLimiter``.

    Example:
        >>> @rate_limited("search")
        ... async def search(query):
        ...     return await client.search_recent_tweets(query)
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            active = limiter or default_rate_limiter()
            return await active.call(endpoint, lambda: func(*args, **kwargs))

        return wrapper

    return decorator


__all__ = [
    "RateLimitState",
    "RateLimitStore",
    "RateLimiter",
    "RetryConfig",
    "SleepStrategy",
    "compute_wait",
    "default_rate_limiter",
    "extract_reset_hint_seconds",
    "is_rate_limited",
    "rate_limited",
]
