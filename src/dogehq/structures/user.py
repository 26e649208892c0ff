"""User structure."""

from typing import Any, Dict, Optional

from .base import Base


class User(Base):
    """
    A DogeHouse user.

    Attributes:
        id: Unique identifier of the user
        username: Unique username
        display_name: Display name
        avatar_url: URL of the avatar image
        banner_url: URL of the banner image
        bio: Profile bio
        online: Whether the user is online
        num_followers: Number of followers
        num_following: Number of users followed
        last_online: ISO 8601 timestamp of the last time online
        current_room_id: Room the user is in, if any
        bot_owner_id: ID of the owning user, if this is a bot
        follows_you: Whether the user follows the client user
        you_are_following: Whether the client user follows the user
    """

    def __init__(self, client, data: Dict[str, Any]):
        super().__init__(client, data)
        self.id: str = data["id"]
        self.username: str = data.get("username", "")
        self.display_name: str = data.get("displayName") or self.username
        self.avatar_url: Optional[str] = data.get("avatarUrl")
        self.banner_url: Optional[str] = data.get("bannerUrl")
        self.bio: str = data.get("bio") or ""
        self.online: bool = data.get("online", False)
        self.num_followers: int = data.get("numFollowers", 0)
        self.num_following: int = data.get("numFollowing", 0)
        self.last_online: Optional[str] = data.get("lastOnline")
        self.current_room_id: Optional[str] = data.get("currentRoomId")
        self.bot_owner_id: Optional[str] = data.get("botOwnerId")
        self.follows_you: bool = bool(data.get("followsYou", False))
        self.you_are_following: bool = bool(data.get("youAreFollowing", False))

    @property
    def is_bot(self) -> bool:
        """Whether the user is a bot account."""
        return self.bot_owner_id is not None

    @property
    def mention(self) -> str:
        """The string that mentions this user in chat."""
        return f"@{self.username}"

    async def follow(self) -> None:
        """Follow this user."""
        await self._wrapper.mutation.follow(self.id, True)

    async def unfollow(self) -> None:
        """Unfollow this user."""
        await self._wrapper.mutation.follow(self.id, False)

    async def block_from_room(self) -> None:
        """Block this user from the client user's current room."""
        await self._wrapper.mutation.block_from_room(self.id)

    def __str__(self) -> str:
        return self.username
