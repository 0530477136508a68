"""
cosmo_x: rate-limit-aware toolkit for the X API v2 and a post scheduling service.
"""

from cosmo_x.config import ConfigManager, CosmoCredentials, SchedulerSettings
from cosmo_x.exceptions import (
    ApiResponseError,
    ConfigurationError,
    CosmoXError,
    RateLimitExceeded,
    RetryCancelled,
    SchedulerError,
)
from cosmo_x.factory import CosmoX, CosmoXFactory
from cosmo_x.rate_limit import (
    RateLimiter,
    RateLimitState,
    RateLimitStore,
    RetryConfig,
    compute_wait,
    extract_reset_hint_seconds,
    is_rate_limited,
    rate_limited,
)

__version__ = "0.1.0"

__all__ = [
    "ApiResponseError",
    "ConfigManager",
    "ConfigurationError",
    "CosmoCredentials",
    "CosmoX",
    "CosmoXError",
    "CosmoXFactory",
    "RateLimitExceeded",
    "RateLimitState",
    "RateLimitStore",
    "RateLimiter",
    "RetryCancelled",
    "RetryConfig",
    "SchedulerError",
    "SchedulerSettings",
    "compute_wait",
    "extract_reset_hint_seconds",
    "is_rate_limited",
    "rate_limited",
]
