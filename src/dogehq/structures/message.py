"""Message structure."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from ..util import MessageToken, tokens_to_string
from .base import Base

if TYPE_CHECKING:
    from .user import User


class Message(Base):
    """
    A chat message in a room.

    Attributes:
        id: Unique identifier of the message
        user_id: ID of the author
        username: Username of the author
        display_name: Display name of the author
        avatar_url: Avatar of the author
        color: Chat color of the author
        tokens: The message body as tokens
        sent_at: ISO 8601 timestamp when the message was sent
        is_whisper: Whether the message was whispered
        deleted: Whether the message was deleted
    """

    def __init__(self, client, data: Dict[str, Any]):
        super().__init__(client, data)
        self.id: str = data["id"]
        self.user_id: str = data.get("userId", "")
        self.username: str = data.get("username", "")
        self.display_name: str = data.get("displayName") or self.username
        self.avatar_url: Optional[str] = data.get("avatarUrl")
        self.color: Optional[str] = data.get("color")
        self.tokens: List[MessageToken] = data.get("tokens") or []
        self.sent_at: Optional[str] = data.get("sentAt")
        self.is_whisper: bool = data.get("isWhisper", False)
        self.deleted: bool = data.get("deleted", False)

    @property
    def content(self) -> str:
        """The message body rendered as text."""
        return tokens_to_string(self.tokens)

    @property
    def author(self) -> Optional["User"]:
        """The author, if the client has seen them join."""
        return self.client.users.get(self.user_id)

    async def reply(self, text: str) -> None:
        """Send a message mentioning the author."""
        await self.client.send_message(f"@{self.username} {text}")

    async def delete(self) -> None:
        """Delete this message. Requires moderator rights unless you sent it."""
        await self._wrapper.mutation.delete_room_chat_message(self.user_id, self.id)

    def __str__(self) -> str:
        return self.content
