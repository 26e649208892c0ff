"""
REST API Helpers

Stateless HTTP calls to the DogeHouse REST API. Only bot authentication
lives here; everything else goes through the real-time connection.
"""

import logging
from typing import Optional

import httpx

from .constants import API_URL
from .schemas import BotCredentials

logger = logging.getLogger(__name__)

# Seconds to wait for the REST API
HTTP_TIMEOUT = 10.0


async def bot_auth(
    api_key: str,
    api_url: str = API_URL,
    http_client: Optional[httpx.AsyncClient] = None,
) -> BotCredentials:
    """
    Exchange a bot API key for its login credentials.

    Args:
        api_key: The bot's API key
        api_url: Base URL of the REST API
        http_client: Optional client to send the request with (for
                     dependency injection/testing)

    Returns:
        BotCredentials with the access token, refresh token and username

    Raises:
        httpx.HTTPError: If the request fails or returns an error status
    """
    url = f"{api_url.rstrip('/')}/bot/auth"
    logger.info("Requesting bot credentials from %s", url)

    if http_client is not None:
        response = await http_client.post(url, json={"apiKey": api_key})
    else:
        async with httpx.AsyncClient(timeout=HTTP_TIMEOUT) as client:
            response = await client.post(url, json={"apiKey": api_key})

    response.raise_for_status()
    return BotCredentials.from_dict(response.json())
