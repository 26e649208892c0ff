"""
DogeHouse Client

This module provides the Client, the entry point of the SDK. It owns the
connection lifecycle, keeps the room and user caches, translates inbound
protocol events into domain events and offers convenience methods that map
to outbound requests.

Architecture:
    - login() opens an authenticated Connection, subscribes to inbound
      events, loads the top public rooms and emits "ready"
    - Inbound events are translated by the _on_* handlers, which are the
      only writers of the caches besides login()
    - Events are dispatched by an EventEmitter the client owns
    - Timers registered through the client's timer helpers are cancelled
      by destroy()

Usage:
    client = Client()

    @client.on(ClientEvent.READY)
    def ready():
        print(f"Logged in as {client.user}")

    await client.login(token, refresh_token)
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Set

from .collection import Collection
from .connection import Connection, connect
from .constants import API_URL, BASE_URL, FETCH_TIMEOUT
from .errors import (
    ClientDestroyedError,
    DogeHouseError,
    InvalidCredentialsError,
    NotConnectedError,
    SessionCollisionError,
    UsernameTakenError,
)
from .events import ClientEvent, EventEmitter, EventName, Listener
from .rest import bot_auth
from .schemas import BotCredentials, CreateBotResponse
from .structures import ClientUser, Message, Room, ScheduledRoom, User
from .util import tokenize
from .wrapper import Wrapper, wrap

logger = logging.getLogger(__name__)


class ClientState(Enum):
    """Lifecycle states of a Client."""

    UNAUTHENTICATED = "unauthenticated"
    CONNECTING = "connecting"
    READY = "ready"
    DESTROYED = "destroyed"


class Interval:
    """
    A repeating timer on the event loop.

    The loop handle changes on every run, so this object is the stable
    handle returned to callers.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        delay: float,
        callback: Callable[[], Any],
    ):
        self._loop = loop
        self._delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._cancelled = False

    def start(self) -> "Interval":
        self._handle = self._loop.call_later(self._delay, self._run)
        return self

    def _run(self) -> None:
        self._handle = self._loop.call_later(self._delay, self._run)
        self._callback()

    def cancel(self) -> None:
        self._cancelled = True
        if self._handle:
            self._handle.cancel()

    def cancelled(self) -> bool:
        return self._cancelled


class Client:
    """
    Client for the DogeHouse real-time API.

    A client goes through UNAUTHENTICATED -> CONNECTING -> READY ->
    DESTROYED. A destroyed client cannot log in again; create a new one.

    login() must not be called concurrently on the same client.

    Attributes:
        url: WebSocket URL of the real-time API
        api_url: Base URL of the REST API
        fetch_timeout: Seconds to wait for request replies
        state: Current lifecycle state
        connection: The open Connection (None outside the READY window)
        wrapper: Named helpers over the connection
        user: The authenticated user (None outside the READY window)
        rooms: Cached rooms keyed by id, loaded from the top public rooms
        users: Cached users keyed by id, filled as users join rooms
        token: Access token used to log in
        refresh_token: Refresh token used to log in
    """

    def __init__(
        self,
        url: str = BASE_URL,
        api_url: str = API_URL,
        fetch_timeout: Optional[float] = FETCH_TIMEOUT,
        websocket_factory: Optional[Callable] = None,
        http_client=None,
    ):
        """
        Initialize the client.

        Args:
            url: WebSocket URL of the real-time API
            api_url: Base URL of the REST API
            fetch_timeout: Seconds to wait for request replies
            websocket_factory: Optional factory for creating WebSocket
                               connections (for dependency injection/testing)
            http_client: Optional httpx.AsyncClient for REST calls
        """
        self.url = url
        self.api_url = api_url
        self.fetch_timeout = fetch_timeout
        self._websocket_factory = websocket_factory
        self._http_client = http_client

        self.state = ClientState.UNAUTHENTICATED
        self.connection: Optional[Connection] = None
        self.wrapper: Optional[Wrapper] = None
        self.user: Optional[ClientUser] = None
        self.rooms: Collection[str, Room] = Collection()
        self.users: Collection[str, User] = Collection()
        self.token: Optional[str] = None
        self.refresh_token: Optional[str] = None

        self._events = EventEmitter()
        self._timeouts: Set[asyncio.TimerHandle] = set()
        self._intervals: Set[Interval] = set()
        self._immediates: Set[asyncio.Handle] = set()
        self._fatal_error: Optional[DogeHouseError] = None

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self.state is not ClientState.DESTROYED:
            await self.destroy()

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on(self, event: EventName, listener: Optional[Listener] = None):
        """
        Register a listener for an event.

        Can be used directly or as a decorator:

            client.on(ClientEvent.MESSAGE, handle_message)

            @client.on("message")
            async def handle_message(message): ...
        """
        if listener is None:
            return lambda fn: self._events.on(event, fn)
        return self._events.on(event, listener)

    def once(self, event: EventName, listener: Listener) -> Listener:
        """Register a listener that is removed after its first call."""
        return self._events.once(event, listener)

    def off(self, event: EventName, listener: Listener) -> None:
        """Remove a listener."""
        self._events.off(event, listener)

    def emit(self, event: EventName, *args: Any) -> bool:
        """Emit an event to its listeners. Returns True if it had any."""
        return self._events.emit(event, *args)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def login(self, token: str, refresh_token: str) -> None:
        """
        Log in to the DogeHouse API.

        The client is READY as soon as the connection is authenticated, before
        the top public rooms are loaded. If loading them fails, the client
        stays READY with an open connection, "ready" is not emitted and a
        second login() is refused. Call destroy() and log in with a new
        Client in that case.

        Args:
            token: Access token
            refresh_token: Refresh token

        Raises:
            InvalidCredentialsError: If either token is empty
            ClientDestroyedError: If the client was destroyed
            DogeHouseError: If the client is already logged in
            SessionCollisionError: If the account logs in elsewhere meanwhile
            ConnectionError: If the connection cannot be established
        """
        if not token or not refresh_token:
            raise InvalidCredentialsError()
        if self.state is ClientState.DESTROYED:
            raise ClientDestroyedError("A destroyed client cannot log in again")
        if self.state is not ClientState.UNAUTHENTICATED:
            raise DogeHouseError("The client is already logged in")

        self.state = ClientState.CONNECTING
        try:
            self.connection = await connect(
                token,
                refresh_token,
                url=self.url,
                on_connection_taken=self._on_connection_taken,
                on_clear_tokens=self._on_clear_tokens,
                fetch_timeout=self.fetch_timeout,
                websocket_factory=self._websocket_factory,
            )
        except BaseException:
            self.state = ClientState.UNAUTHENTICATED
            raise

        self.state = ClientState.READY
        self.user = ClientUser(self, self.connection.user)
        self.rooms = Collection()
        self.users = Collection()
        self.wrapper = wrap(self.connection)
        self._register_translators()
        self.token = token
        self.refresh_token = refresh_token

        try:
            result = await self.wrapper.query.get_top_public_rooms()
        except NotConnectedError:
            if self._fatal_error is not None:
                raise self._fatal_error from None
            raise
        for data in result.get("rooms", []):
            room = Room(self, data)
            self.rooms[room.id] = room

        logger.info("Client ready with %d rooms", len(self.rooms))
        self.emit(ClientEvent.READY)

    async def destroy(self) -> None:
        """
        Close the connection and cancel every timer set through the client.

        The room and user caches are left in place so the last known state
        can still be inspected. Destroying twice is a no-op.
        """
        if self.connection is not None:
            await self.connection.close()
        self._teardown()
        logger.info("Client destroyed")

    async def wait_until_closed(self) -> None:
        """
        Wait until the connection ends.

        Raises:
            NotConnectedError: If the client is not logged in
            SessionCollisionError: If another login took the session over
        """
        await self._require_connection().wait_closed()
        if self._fatal_error is not None:
            raise self._fatal_error

    def _teardown(self) -> None:
        """Drop the session, cancel the timers and mark the client destroyed."""
        self.connection = None
        self.wrapper = None
        self.user = None
        self.token = None
        self.refresh_token = None

        for timeout in list(self._timeouts):
            self.clear_timeout(timeout)
        for interval in list(self._intervals):
            self.clear_interval(interval)
        for immediate in list(self._immediates):
            self.clear_immediate(immediate)

        self._timeouts.clear()
        self._intervals.clear()
        self._immediates.clear()

        self.state = ClientState.DESTROYED

    def _on_connection_taken(self) -> None:
        logger.critical("This account logged in elsewhere, the session is lost")
        error = SessionCollisionError()
        if self.state is ClientState.CONNECTING:
            # login() is still waiting for the handshake and raises it
            raise error

        # The server already closed the socket, so nothing is left to close
        self._fatal_error = error
        self._teardown()
        asyncio.get_running_loop().call_exception_handler(
            {"message": "DogeHouse session taken over", "exception": error}
        )

    def _on_clear_tokens(self) -> None:
        logger.error("The server rejected the tokens")
        self.token = None
        self.refresh_token = None

    # ------------------------------------------------------------------
    # Inbound event translation
    # ------------------------------------------------------------------

    def _register_translators(self) -> None:
        subscribe = self.wrapper.subscribe
        subscribe.new_chat_msg(self._on_new_chat_msg)
        subscribe.user_join_room(self._on_user_join_room)
        subscribe.user_leave_room(self._on_user_leave_room)
        subscribe.hand_raised(self._on_hand_raised)
        subscribe.invitation_to_room(self._on_invitation_to_room)
        subscribe.new_tokens(self._on_new_tokens)

    def _on_new_chat_msg(self, data) -> None:
        self.emit(ClientEvent.MESSAGE, Message(self, data["msg"]))

    def _on_user_join_room(self, data) -> None:
        user = User(self, data["user"])
        self.users[user.id] = user
        self.emit(ClientEvent.USER_JOIN, user)

    def _on_user_leave_room(self, data) -> None:
        # Users the client never saw join are reported as None
        self.emit(
            ClientEvent.USER_LEAVE,
            self.users.get(data.get("userId")),
            self.rooms.get(data.get("roomId")),
        )

    def _on_hand_raised(self, data) -> None:
        self.emit(ClientEvent.HAND_RAISED, self.users.get(data.get("userId")))

    def _on_invitation_to_room(self, data) -> None:
        self.emit(ClientEvent.INVITE, data)

    def _on_new_tokens(self, data) -> None:
        self.token = data.get("accessToken", self.token)
        self.refresh_token = data.get("refreshToken", self.refresh_token)
        logger.debug("Tokens refreshed")

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _require_connection(self) -> Connection:
        if self._fatal_error is not None:
            raise self._fatal_error
        if self.connection is None:
            raise NotConnectedError("The client is not logged in")
        return self.connection

    def _require_wrapper(self) -> Wrapper:
        self._require_connection()
        return self.wrapper

    async def create_bot(self, username: str) -> Optional[str]:
        """
        Create a bot account owned by the client user.

        Args:
            username: Username of the bot

        Returns:
            The bot's API key, or None if the server did not issue one

        Raises:
            UsernameTakenError: If the username is taken
        """
        reply = await self._require_wrapper().mutation.user_create_bot(username)
        response = CreateBotResponse.from_dict(reply or {})

        if response.is_username_taken:
            raise UsernameTakenError(username)

        logger.info("Created bot '%s'", username)
        return response.api_key

    async def get_bot_credentials(self, api_key: str) -> BotCredentials:
        """
        Get a bot's login credentials from its API key.

        Does not need the client to be logged in.
        """
        return await bot_auth(api_key, self.api_url, self._http_client)

    async def fetch_top_rooms(self, cursor: int = 0) -> List[Room]:
        """Fetch a page of the top public rooms. Does not touch the cache."""
        result = await self._require_wrapper().query.get_top_public_rooms(cursor)
        return [Room(self, data) for data in result.get("rooms", [])]

    async def fetch_scheduled_rooms(
        self, only_mine: bool = False, cursor: str = ""
    ) -> List[ScheduledRoom]:
        """Fetch a page of scheduled rooms."""
        result = await self._require_wrapper().query.get_scheduled_rooms(
            cursor, only_mine
        )
        return [ScheduledRoom(self, data) for data in result.get("rooms", [])]

    async def fetch_user(self, id_or_username: str) -> Optional[User]:
        """Fetch a user profile, or None if the user does not exist."""
        data = await self._require_wrapper().query.get_user_profile(id_or_username)
        if not data or "id" not in data:
            return None
        return User(self, data)

    async def join_room(self, room_id: str) -> Room:
        """
        Join a room and emit "join_room".

        Raises:
            DogeHouseError: If the server refuses the join
        """
        result = await self._require_wrapper().query.join_room_and_get_info(room_id)
        if "error" in result:
            raise DogeHouseError(result["error"])

        room = Room(self, result["room"])
        logger.info("Joined room '%s'", room.name)
        self.emit(ClientEvent.JOIN_ROOM, room)
        return room

    async def leave_room(self) -> None:
        """Leave the current room and emit "leave_room"."""
        result = await self._require_wrapper().mutation.leave_room() or {}
        room = self.rooms.get(result.get("roomId"))
        logger.info("Left room %s", result.get("roomId"))
        self.emit(ClientEvent.LEAVE_ROOM, room)

    async def send_message(self, text: str, whispered_to: Iterable[str] = ()) -> None:
        """
        Send a chat message to the current room.

        Args:
            text: Message text; mentions, links, emotes and `blocks` are
                  converted to tokens
            whispered_to: IDs of users to whisper to

        Raises:
            ValueError: If the message is empty
        """
        tokens = tokenize(text)
        if not tokens:
            raise ValueError("Cannot send an empty message")
        await self._require_wrapper().mutation.send_room_chat_msg(tokens, whispered_to)

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def set_timeout(
        self, fn: Callable[..., Any], delay: float, *args: Any
    ) -> asyncio.TimerHandle:
        """
        Call fn(*args) after delay seconds unless the client is destroyed.

        Must be called while the event loop is running.
        """
        handle: Optional[asyncio.TimerHandle] = None

        def fire() -> None:
            self._timeouts.discard(handle)
            fn(*args)

        handle = asyncio.get_running_loop().call_later(delay, fire)
        self._timeouts.add(handle)
        return handle

    def set_interval(self, fn: Callable[..., Any], delay: float, *args: Any) -> Interval:
        """Call fn(*args) every delay seconds until cleared or destroyed."""
        interval = Interval(
            asyncio.get_running_loop(), delay, lambda: fn(*args)
        ).start()
        self._intervals.add(interval)
        return interval

    def set_immediate(self, fn: Callable[..., Any], *args: Any) -> asyncio.Handle:
        """Call fn(*args) on the next loop iteration unless destroyed first."""
        handle: Optional[asyncio.Handle] = None

        def fire() -> None:
            self._immediates.discard(handle)
            fn(*args)

        handle = asyncio.get_running_loop().call_soon(fire)
        self._immediates.add(handle)
        return handle

    def clear_timeout(self, timeout: asyncio.TimerHandle) -> None:
        timeout.cancel()
        self._timeouts.discard(timeout)

    def clear_interval(self, interval: Interval) -> None:
        interval.cancel()
        self._intervals.discard(interval)

    def clear_immediate(self, immediate: asyncio.Handle) -> None:
        immediate.cancel()
        self._immediates.discard(immediate)
