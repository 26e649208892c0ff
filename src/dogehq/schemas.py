"""
Response Schemas

Dataclasses for the replies the SDK hands back to callers as typed values
rather than entity structures. BaseResponse provides the shared
deserialization from the camelCase payloads the API sends.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Type, TypeVar

T = TypeVar("T", bound="BaseResponse")


class BaseResponse:
    """
    Base class for response schemas.

    Provides common deserialization methods for creating response objects
    from API payloads.
    """

    @classmethod
    def from_dict(cls: Type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from a payload dictionary.

        Args:
            data: Payload, either bare or wrapped under a "d" key

        Returns:
            Instance of the response class.
        """
        response_data = data.get("d", data)
        return cls._from_data(response_data)

    @classmethod
    def _from_data(cls: Type[T], data: Dict[str, Any]) -> T:
        """
        Create instance from the unwrapped payload.

        Should be overridden by subclasses whose fields do not match the
        payload keys.
        """
        return cls(**data)


@dataclass
class CreateBotResponse(BaseResponse):
    """
    Reply to a user:create_bot request.

    Attributes:
        api_key: The new bot's API key, None if not created
        is_username_taken: Whether the requested username is taken
        error: Error message from the server, if any
    """

    api_key: Optional[str]
    is_username_taken: Optional[bool]
    error: Optional[str]

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "CreateBotResponse":
        """Create from the reply payload."""
        return cls(
            api_key=data.get("apiKey"),
            is_username_taken=data.get("isUsernameTaken"),
            error=data.get("error"),
        )


@dataclass
class BotCredentials(BaseResponse):
    """
    Credentials returned by the bot auth endpoint.

    Attributes:
        access_token: Access token to log the bot in
        refresh_token: Refresh token to log the bot in
        username: The bot's username
    """

    access_token: str
    refresh_token: str
    username: str

    @classmethod
    def _from_data(cls, data: Dict[str, Any]) -> "BotCredentials":
        """Create from the endpoint's JSON body."""
        return cls(
            access_token=data["accessToken"],
            refresh_token=data["refreshToken"],
            username=data["username"],
        )
