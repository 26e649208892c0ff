"""ScheduledRoom structure."""

from typing import Any, Dict, Optional

from .base import Base
from .user import User

# Fields accepted by edit, mapped to their payload keys
EDITABLE_FIELDS = {
    "name": "name",
    "description": "description",
    "scheduled_for": "scheduledFor",
}


class ScheduledRoom(Base):
    """
    A room scheduled to open at a later time.

    Attributes:
        id: Unique identifier of the scheduled room
        name: Name of the room
        description: Room description
        scheduled_for: ISO 8601 timestamp when the room opens
        room_id: ID of the live room once it has started, else None
        creator_id: ID of the creator
        creator: The creator, built from the embedded payload if present
    """

    def __init__(self, client, data: Dict[str, Any]):
        super().__init__(client, data)
        self.id: str = data["id"]
        self.name: str = data.get("name", "")
        self.description: str = data.get("description") or ""
        self.scheduled_for: Optional[str] = data.get("scheduledFor")
        self.room_id: Optional[str] = data.get("roomId")
        self.creator_id: Optional[str] = data.get("creatorId")
        creator = data.get("creator")
        self.creator: Optional[User] = User(client, creator) if creator else None

    @property
    def started(self) -> bool:
        """Whether the room has gone live."""
        return self.room_id is not None

    async def edit(self, **fields: Any) -> None:
        """
        Edit the scheduled room.

        Args:
            **fields: Any of name, description, scheduled_for

        Raises:
            ValueError: If an unknown field is given
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown fields: {', '.join(sorted(unknown))}")

        data = {EDITABLE_FIELDS[name]: value for name, value in fields.items()}
        await self._wrapper.mutation.edit_scheduled_room(self.id, data)

    async def delete(self) -> None:
        await self._wrapper.mutation.delete_scheduled_room(self.id)

    def __str__(self) -> str:
        return self.name
