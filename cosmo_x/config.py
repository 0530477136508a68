"""
Configuration management utilities for cosmo_x.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Mapping, Sequence

from dotenv import dotenv_values

from cosmo_x.exceptions import ConfigurationError

ENV_VAR_MAP = {
    "consumer_key": "X_CONSUMER_KEY",
    "consumer_secret": "X_CONSUMER_SECRET",
    "access_token": "X_ACCESS_TOKEN",
    "access_token_secret": "X_ACCESS_TOKEN_SECRET",
    "bearer_token": "X_BEARER_TOKEN",
}

SCHEDULER_URL_VARS = ("SCHEDULER_URL", "SCHEDULER_API_URL")
SCHEDULER_KEY_VAR = "SCHEDULER_API_KEY"
DEFAULT_SCHEDULER_URL = "https://api-production-bb3f.up.railway.app"


@dataclass(slots=True)
class CosmoCredentials:
    """Credential container for OAuth 1.0a user context and app-only bearer auth."""

    consumer_key: str | None = None
    consumer_secret: str | None = None
    access_token: str | None = None
    access_token_secret: str | None = None
    bearer_token: str | None = None

    def missing(self) -> list[str]:
        """Names of the environment variables whose values are still empty."""

        return [
            ENV_VAR_MAP[item.name]
            for item in fields(self)
            if not getattr(self, item.name)
        ]

    def is_empty(self) -> bool:
        return len(self.missing()) == len(ENV_VAR_MAP)

    def merge(self, other: "CosmoCredentials") -> "CosmoCredentials":
        """Fill empty fields from ``other``; values already set are kept."""

        return CosmoCredentials(
            **{
                item.name: getattr(self, item.name) or getattr(other, item.name)
                for item in fields(self)
            }
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, str | None]) -> "CosmoCredentials":
        return cls(**{field_name: data.get(field_name) for field_name in ENV_VAR_MAP})


@dataclass(slots=True)
class SchedulerSettings:
    """Location and key of the scheduling service."""

    api_key: str
    base_url: str = DEFAULT_SCHEDULER_URL

    def __post_init__(self) -> None:
        self.base_url = self.base_url.rstrip("/")


class ConfigManager:
    """Loads credentials and scheduler settings from the environment or a .env file."""

    def __init__(
        self,
        *,
        env: Mapping[str, str] | None = None,
        dotenv_path: Path | None = None,
    ) -> None:
        self._env = os.environ if env is None else env
        self._dotenv_path = dotenv_path or Path(".env")

    def load_credentials(
        self,
        priority: Sequence[str] = ("env", "dotenv"),
    ) -> CosmoCredentials:
        """
        Load credentials, consulting sources in ``priority`` order.

        Sources are merged field by field, earlier sources winning.

        Raises:
            ConfigurationError: when any required variable is missing.
        """

        credentials = CosmoCredentials()
        for source in priority:
            values = self._source(source)
            credentials = credentials.merge(
                CosmoCredentials.from_mapping(
                    {field_name: values.get(env_name) for field_name, env_name in ENV_VAR_MAP.items()}
                )
            )

        missing = credentials.missing()
        if missing:
            raise ConfigurationError(f"Missing env vars: {', '.join(missing)}")
        return credentials

    def load_scheduler_settings(self) -> SchedulerSettings:
        """
        Resolve the scheduler location and API key.

        Raises:
            ConfigurationError: when ``SCHEDULER_API_KEY`` is not set.
        """

        values = {**self._source("dotenv"), **{k: v for k, v in self._env.items() if v}}
        api_key = values.get(SCHEDULER_KEY_VAR)
        if not api_key:
            raise ConfigurationError(f"{SCHEDULER_KEY_VAR} not set")

        base_url = next(
            (values[name] for name in SCHEDULER_URL_VARS if values.get(name)),
            DEFAULT_SCHEDULER_URL,
        )
        return SchedulerSettings(api_key=api_key, base_url=base_url)

    def _source(self, source: str) -> Mapping[str, str | None]:
        if source == "env":
            return self._env
        if source == "dotenv":
            return self._load_dotenv()
        raise ValueError(f"Unknown credential source '{source}'.")

    def _load_dotenv(self) -> Mapping[str, str | None]:
        if not self._dotenv_path.exists():
            return {}
        return dotenv_values(self._dotenv_path)
