"""
Shared fixtures: canned HTTP responses, mocked transports and no-op sleeps.
"""

from typing import Any, Optional
from unittest.mock import AsyncMock

import httpx
import pytest

from kopendata.config import AuthStrategy, ClientConfig
from kopendata.flood.client import DEFAULT_BASE_URL, FloodControlClient

TEST_KEY = "test-key"


def make_response(
    status_code: int = 200,
    json: Any = None,
    text: Optional[str] = None,
    url: str = "http://test.invalid/",
) -> httpx.Response:
    request = httpx.Request("GET", url)
    if json is not None:
        return httpx.Response(status_code, json=json, request=request)
    return httpx.Response(status_code, text=text or "", request=request)


@pytest.fixture
def http_response():
    """Factory for httpx.Response objects bound to a request."""
    return make_response


@pytest.fixture
def http_client():
    """Mocked httpx.AsyncClient; set ``get.return_value`` or ``get.side_effect``."""
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def no_sleep():
    """Records backoff delays instead of sleeping."""
    return AsyncMock()


@pytest.fixture
def hrfco_config():
    return ClientConfig(base_url=DEFAULT_BASE_URL, api_key=TEST_KEY)


@pytest.fixture
def flood_client(hrfco_config, http_client, no_sleep):
    """HRFCO client with a path-segment key and a mocked transport."""
    return FloodControlClient(config=hrfco_config, http_client=http_client, sleep=no_sleep)


@pytest.fixture
def service_key_flood_client(http_client, no_sleep):
    config = ClientConfig(
        base_url=DEFAULT_BASE_URL,
        api_key=TEST_KEY,
        auth_strategy=AuthStrategy.SERVICE_KEY,
    )
    return FloodControlClient(config=config, http_client=http_client, sleep=no_sleep)
