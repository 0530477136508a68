"""
Factory for creating authenticated X API clients.
"""

from __future__ import annotations

from dataclasses import dataclass

from tweepy.asynchronous import AsyncClient

from cosmo_x.clients.x_api_client import XApiClient
from cosmo_x.config import ConfigManager, CosmoCredentials
from cosmo_x.exceptions import ConfigurationError


@dataclass(slots=True)
class CosmoX:
    """
    Holds both X API clients and the credentials they were built from.

    ``client`` uses OAuth 1.0a user context (reads and writes); ``reader``
    uses the app-only bearer token (reads only).
    """

    credentials: CosmoCredentials
    client: XApiClient
    reader: XApiClient

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.reader.aclose()

    async def __aenter__(self) -> "CosmoX":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class CosmoXFactory:
    """Factory for creating properly initialized X API clients."""

    @staticmethod
    def create_from_config(config_manager: ConfigManager) -> CosmoX:
        """
        Create both clients from configured credentials.

        Args:
            config_manager: ConfigManager instance used to load credentials

        Raises:
            ConfigurationError: If credentials are missing
        """
        credentials = config_manager.load_credentials()
        return CosmoXFactory.create_from_credentials(credentials)

    @staticmethod
    def create_from_credentials(credentials: CosmoCredentials) -> CosmoX:
        """
        Create both clients directly from credentials.

        Raises:
            ConfigurationError: If required credentials are missing
        """
        missing = credentials.missing()
        if missing:
            raise ConfigurationError(f"Missing env vars: {', '.join(missing)}")

        # User context: signs every request with OAuth 1.0a
        user_client = AsyncClient(
            consumer_key=credentials.consumer_key,
            consumer_secret=credentials.consumer_secret,
            access_token=credentials.access_token,
            access_token_secret=credentials.access_token_secret,
            return_type=dict,
        )

        # App-only bearer token for reads
        app_client = AsyncClient(bearer_token=credentials.bearer_token, return_type=dict)

        return CosmoX(
            credentials=credentials,
            client=XApiClient(user_client, user_auth=True),
            reader=XApiClient(app_client, user_auth=False),
        )
