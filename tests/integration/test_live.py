"""
Read-only smoke tests against the live X API.

Skipped unless every X_* credential is present in the environment.
"""

from __future__ import annotations

import os

import pytest

from cosmo_x.config import ENV_VAR_MAP, ConfigManager
from cosmo_x.factory import CosmoXFactory
from cosmo_x.services.lookup_service import LookupService
from cosmo_x.services.search_service import SearchService

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(
        not all(os.environ.get(name) for name in ENV_VAR_MAP.values()),
        reason="live X credentials not configured",
    ),
]


@pytest.mark.asyncio
async def test_live_me_and_search():
    async with CosmoXFactory.create_from_config(ConfigManager()) as cosmo:
        me = await LookupService(cosmo.client).get_me()
        found = await SearchService(cosmo.reader).search_recent("python -is:retweet")

    assert me is not None
    assert me.username
    assert found.total_pages == 1
