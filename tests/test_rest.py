"""
Tests for the REST helpers
"""

import httpx
import pytest

from dogehq import BotCredentials
from dogehq.rest import bot_auth


@pytest.mark.asyncio
async def test_bot_auth_posts_api_key():
    """Test that the API key is posted and the credentials parsed."""

    def handler(request):
        assert request.method == "POST"
        assert request.url.path == "/bot/auth"
        return httpx.Response(
            200,
            json={"accessToken": "a", "refreshToken": "r", "username": "bot"},
        )

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        credentials = await bot_auth("key", "https://api.test.invalid/", http)

    assert isinstance(credentials, BotCredentials)
    assert credentials.access_token == "a"
    assert credentials.refresh_token == "r"
    assert credentials.username == "bot"


@pytest.mark.asyncio
async def test_bot_auth_error_status_propagates():
    """Test that HTTP errors reach the caller unchanged."""

    def handler(request):
        return httpx.Response(401, json={"error": "invalid api key"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        with pytest.raises(httpx.HTTPStatusError):
            await bot_auth("bad", "https://api.test.invalid", http)
