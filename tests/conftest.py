"""Shared pytest fixtures for geo-suggest tests."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from datasette.app import Datasette

from geo_suggest.coordinates import validate


def _make_response(json_data=None, status_code=200, json_error=None):
    """Build a mock httpx response.

    Non-2xx statuses make raise_for_status() raise HTTPStatusError, and
    json_error makes json() raise, mimicking a malformed body.
    """
    response = MagicMock()
    response.status_code = status_code
    response.raise_for_status = MagicMock()
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "Error", request=MagicMock(), response=response
        )
    return response


@pytest.fixture
def make_response():
    """Factory for mock httpx responses."""
    return _make_response


@pytest.fixture
def mock_http():
    """Patch httpx.AsyncClient; yields the client instance whose .get to program.

    Usage:
        mock_http.get.return_value = make_response({...})
        mock_http.get.side_effect = [make_response(...), httpx.ConnectTimeout("slow")]
    """
    with patch("httpx.AsyncClient") as MockClient:
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = None
        MockClient.return_value = mock_client
        yield mock_client


@pytest.fixture
def coordinate():
    """Rijksmuseum, Amsterdam."""
    return validate("52.36", "4.8852")


@pytest.fixture
def datasette():
    """Create an in-memory Datasette instance with the plugin configured.

    Uses config= (not metadata=) for Datasette v1 compatibility.
    """
    return Datasette(
        memory=True,
        config={
            "plugins": {
                "datasette-geo-suggest": {
                    "retry_cooldown_seconds": 3,
                    "api_timeout_seconds": 5,
                }
            },
        },
    )
