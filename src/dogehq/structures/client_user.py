"""ClientUser structure."""

import logging
from typing import Any, Dict, Iterable

from ..errors import UsernameTakenError
from .user import User

logger = logging.getLogger(__name__)

# Profile fields accepted by edit_profile, mapped to their payload keys
PROFILE_FIELDS = {
    "username": "username",
    "display_name": "displayName",
    "bio": "bio",
    "avatar_url": "avatarUrl",
    "banner_url": "bannerUrl",
}


class ClientUser(User):
    """
    The authenticated user the client is logged in as.

    Built from the user payload the server sends when authentication
    succeeds.
    """

    async def edit_profile(self, **fields: Any) -> None:
        """
        Edit the client user's profile.

        Args:
            **fields: Any of username, display_name, bio, avatar_url,
                      banner_url

        Raises:
            ValueError: If an unknown field is given
            UsernameTakenError: If the new username is taken
        """
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile fields: {', '.join(sorted(unknown))}")

        data = {PROFILE_FIELDS[name]: value for name, value in fields.items()}
        result = await self._wrapper.mutation.edit_profile(data) or {}
        if result.get("isUsernameTaken"):
            raise UsernameTakenError(fields.get("username", ""))

        logger.info("Profile updated: %s", ", ".join(sorted(fields)))

    async def set_display_name(self, display_name: str) -> None:
        await self.edit_profile(display_name=display_name)

    async def set_bio(self, bio: str) -> None:
        await self.edit_profile(bio=bio)

    async def ask_to_speak(self) -> None:
        """Ask to speak in the current room."""
        await self._wrapper.mutation.ask_to_speak()

    async def send_message(self, text: str, whispered_to: Iterable[str] = ()) -> None:
        """Send a chat message to the current room. See Client.send_message."""
        await self.client.send_message(text, whispered_to)
