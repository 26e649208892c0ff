"""Room structure."""

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from .base import Base

if TYPE_CHECKING:
    from .user import User


class Room(Base):
    """
    A public or private voice room.

    Attributes:
        id: Unique identifier of the room
        name: Name of the room
        description: Room description
        num_people_inside: Number of users in the room
        is_private: Whether the room is private
        creator_id: ID of the user who created the room
        people_preview: Short previews ({id, displayName, numFollowers})
                        of some users in the room
        voice_server_id: ID of the voice server hosting the room
        created_at: ISO 8601 timestamp when the room was created
    """

    def __init__(self, client, data: Dict[str, Any]):
        super().__init__(client, data)
        self.id: str = data["id"]
        self.name: str = data.get("name", "")
        self.description: str = data.get("description") or ""
        self.num_people_inside: int = data.get("numPeopleInside", 0)
        self.is_private: bool = data.get("isPrivate", False)
        self.creator_id: Optional[str] = data.get("creatorId")
        self.people_preview: List[Dict[str, Any]] = data.get("peoplePreviewList") or []
        self.voice_server_id: Optional[str] = data.get("voiceServerId")
        self.created_at: Optional[str] = data.get("inserted_at")

    @property
    def creator(self) -> Optional["User"]:
        """The creator, if the client has seen them."""
        return self.client.users.get(self.creator_id)

    async def join(self) -> "Room":
        """Join this room. See Client.join_room."""
        return await self.client.join_room(self.id)

    def __str__(self) -> str:
        return self.name
