"""
Connection Wrapper

Named helpers over a raw Connection, grouped the way the API groups them:

    wrapper.subscribe  - register handlers for inbound events
    wrapper.query      - read-only requests that return data
    wrapper.mutation   - requests that change server state

Every helper maps to exactly one op. Payloads are returned as the raw
dictionaries the server sends; wrapping them in entity structures is the
Client's job.
"""

from typing import Any, Callable, Dict, Iterable, List, Optional

from .connection import Connection

EventHandler = Callable[[Dict[str, Any]], None]


class Subscriptions:
    """Handlers for inbound server events."""

    def __init__(self, connection: Connection):
        self.connection = connection

    def _listen(self, opcode: str, handler: EventHandler) -> Callable[[], None]:
        return self.connection.add_listener(
            opcode, lambda data, _fetch_id: handler(data)
        )

    def new_chat_msg(self, handler: EventHandler) -> Callable[[], None]:
        """Payload: {"userId", "msg"}."""
        return self._listen("new_chat_msg", handler)

    def user_join_room(self, handler: EventHandler) -> Callable[[], None]:
        """Payload: {"user", "muteMap", "roomId"}."""
        return self._listen("new_user_join_room", handler)

    def user_leave_room(self, handler: EventHandler) -> Callable[[], None]:
        """Payload: {"userId", "roomId"}."""
        return self._listen("user_left_room", handler)

    def hand_raised(self, handler: EventHandler) -> Callable[[], None]:
        """Payload: {"userId", "roomId"}."""
        return self._listen("hand_raised", handler)

    def invitation_to_room(self, handler: EventHandler) -> Callable[[], None]:
        """Payload: {"type", "username", "displayName", "avatarUrl", "roomName", "roomId"}."""
        return self._listen("invitation_to_room", handler)

    def new_tokens(self, handler: EventHandler) -> Callable[[], None]:
        """Payload: {"accessToken", "refreshToken"}."""
        return self._listen("new-tokens", handler)


class Queries:
    """Read-only requests."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def get_top_public_rooms(self, cursor: int = 0) -> Dict[str, Any]:
        """Return {"rooms": [...], "nextCursor": int | None}."""
        return await self.connection.fetch("get_top_public_rooms", {"cursor": cursor})

    async def get_scheduled_rooms(
        self, cursor: str = "", get_only_my_scheduled_rooms: bool = False
    ) -> Dict[str, Any]:
        """Return {"rooms": [...], "nextCursor": str | None}."""
        return await self.connection.fetch(
            "get_scheduled_rooms",
            {
                "cursor": cursor,
                "getOnlyMyScheduledRooms": get_only_my_scheduled_rooms,
            },
        )

    async def get_user_profile(self, id_or_username: str) -> Optional[Dict[str, Any]]:
        """Return the user payload, or None if the user does not exist."""
        return await self.connection.fetch(
            "get_user_profile", {"userId": id_or_username}
        )

    async def join_room_and_get_info(self, room_id: str) -> Dict[str, Any]:
        """Return {"room", "users", "muteMap", "roomId", ...} or {"error"}."""
        return await self.connection.fetch(
            "join_room_and_get_info", {"roomId": room_id}
        )


class Mutations:
    """Requests that change server state."""

    def __init__(self, connection: Connection):
        self.connection = connection

    async def user_create_bot(self, username: str) -> Dict[str, Any]:
        """Return {"apiKey", "isUsernameTaken", "error"}."""
        return await self.connection.fetch("user:create_bot", {"username": username})

    async def follow(self, user_id: str, value: bool) -> None:
        await self.connection.fetch("follow", {"userId": user_id, "value": value})

    async def leave_room(self) -> Dict[str, Any]:
        """Return {"roomId"} once the server confirms."""
        return await self.connection.fetch("leave_room", {}, "you_left_room")

    async def send_room_chat_msg(
        self, tokens: List[Dict[str, str]], whispered_to: Iterable[str] = ()
    ) -> None:
        await self.connection.send(
            "send_room_chat_msg",
            {"tokens": tokens, "whisperedTo": list(whispered_to)},
        )

    async def delete_room_chat_message(self, user_id: str, message_id: str) -> None:
        await self.connection.send(
            "delete_room_chat_message",
            {"userId": user_id, "messageId": message_id},
        )

    async def ask_to_speak(self) -> None:
        await self.connection.send("ask_to_speak", {})

    async def block_from_room(self, user_id: str) -> None:
        await self.connection.send("block_from_room", {"userId": user_id})

    async def edit_profile(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Return {"isUsernameTaken"}."""
        return await self.connection.fetch("edit_profile", {"data": data})

    async def edit_scheduled_room(self, room_id: str, data: Dict[str, Any]) -> None:
        await self.connection.fetch(
            "edit_scheduled_room", {"id": room_id, "data": data}
        )

    async def delete_scheduled_room(self, room_id: str) -> None:
        await self.connection.fetch("delete_scheduled_room", {"id": room_id})


class Wrapper:
    """
    Groups the subscribe, query and mutation helpers of one connection.

    Attributes:
        connection: The wrapped Connection
        subscribe: Inbound event registration
        query: Read-only requests
        mutation: State-changing requests
    """

    def __init__(self, connection: Connection):
        self.connection = connection
        self.subscribe = Subscriptions(connection)
        self.query = Queries(connection)
        self.mutation = Mutations(connection)


def wrap(connection: Connection) -> Wrapper:
    """Wrap a connection in its named helpers."""
    return Wrapper(connection)
