"""
Structures Package

Entity structures wrapping the payloads the API sends. Each keeps a weak
reference to the Client that created it.
"""

from .base import Base
from .client_user import ClientUser
from .message import Message
from .room import Room
from .scheduled_room import ScheduledRoom
from .user import User

__all__ = [
    "Base",
    "ClientUser",
    "Message",
    "Room",
    "ScheduledRoom",
    "User",
]
