"""
Raw Connection to the DogeHouse Real-Time API

This module owns the WebSocket transport: the auth handshake, heartbeat
pings, op-coded JSON messages and request/reply matching. Everything above
it (the Client, the entity structures) talks to the server through a
Connection returned by connect().

Message Format:
    Outbound:  {"op": "<opcode>", "d": {...}, "fetchId": "<uuid>"}
    Inbound:   {"op": "<opcode>", "d": {...}, "fetchId": "<uuid>"}
    Heartbeat: the client sends the text frame "ping", the server answers
               with the JSON string "pong".

Architecture:
    - connect() opens the socket, sends the "auth" op and waits for
      "auth-good" before returning a Connection
    - A reader task dispatches inbound messages to listeners keyed by op
    - fetch() sends a request tagged with a fetchId and waits for the
      matching "fetch_done" reply (or a caller supplied done opcode)
    - Server close codes 4003 (connection taken) and 4004 (invalid tokens)
      are surfaced through callbacks
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Callable, Dict, List, Optional, Set

import websockets

from .constants import (
    BASE_URL,
    CLOSE_CONNECTION_TAKEN,
    CLOSE_INVALID_TOKENS,
    CLOSE_KICKED,
    CONNECT_TIMEOUT,
    FETCH_TIMEOUT,
    HEARTBEAT_INTERVAL,
    PLATFORM,
)
from .errors import NotConnectedError, RequestTimeoutError

logger = logging.getLogger(__name__)

Handler = Callable[[Any, Optional[str]], None]


def _encode(opcode: str, data: Any, fetch_id: Optional[str] = None) -> str:
    """Build the JSON frame for an outbound op."""
    payload: Dict[str, Any] = {"op": opcode, "d": data if data is not None else {}}
    if fetch_id:
        payload["fetchId"] = fetch_id
    return json.dumps(payload)


class Connection:
    """
    An authenticated connection to the real-time API.

    Instances are created by connect(); do not construct one directly
    unless you already hold an authenticated websocket (tests do).

    Attributes:
        websocket: The underlying WebSocket connection
        user: Raw payload of the authenticated user from "auth-good"
        initial_current_room_id: Room the user was in when authenticating
        token: Current access token (updated by "new-tokens")
        refresh_token: Current refresh token (updated by "new-tokens")
        fetch_timeout: Seconds to wait for replies, None waits forever
    """

    def __init__(
        self,
        websocket,
        user: Dict[str, Any],
        token: str,
        refresh_token: str,
        initial_current_room_id: Optional[str] = None,
        fetch_timeout: Optional[float] = FETCH_TIMEOUT,
        heartbeat_interval: float = HEARTBEAT_INTERVAL,
        on_connection_taken: Optional[Callable[[], None]] = None,
        on_clear_tokens: Optional[Callable[[], None]] = None,
    ):
        self.websocket = websocket
        self.user = user
        self.token = token
        self.refresh_token = refresh_token
        self.initial_current_room_id = initial_current_room_id
        self.fetch_timeout = fetch_timeout
        self.heartbeat_interval = heartbeat_interval
        self._on_connection_taken = on_connection_taken
        self._on_clear_tokens = on_clear_tokens
        self._listeners: Dict[str, List[Handler]] = {}
        self._pending: Set[asyncio.Future] = set()
        self._reader: Optional[asyncio.Task] = None
        self._heartbeat: Optional[asyncio.Task] = None
        self._closed = False
        self._error: Optional[BaseException] = None

    def start(self) -> None:
        """Start the reader and heartbeat tasks."""
        self._reader = asyncio.ensure_future(self._read_loop())
        self._heartbeat = asyncio.ensure_future(self._heartbeat_loop())

    @property
    def closed(self) -> bool:
        """Check if the connection has been closed, locally or remotely."""
        return self._closed

    def add_listener(self, opcode: str, handler: Handler) -> Callable[[], None]:
        """
        Register a handler for an inbound op.

        Args:
            opcode: The op to listen for (e.g. "new_chat_msg")
            handler: Called with (data, fetch_id) for every matching message

        Returns:
            A function that removes the handler
        """
        self._listeners.setdefault(opcode, []).append(handler)

        def unsubscribe() -> None:
            handlers = self._listeners.get(opcode, [])
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def once(self, opcode: str, handler: Handler) -> None:
        """Register a handler that is removed after its first call."""

        def wrapper(data: Any, fetch_id: Optional[str]) -> None:
            unsubscribe()
            handler(data, fetch_id)

        unsubscribe = self.add_listener(opcode, wrapper)

    async def send(
        self, opcode: str, data: Any = None, fetch_id: Optional[str] = None
    ) -> None:
        """
        Send an op without waiting for a reply.

        Raises:
            NotConnectedError: If the connection is closed
        """
        if self._closed:
            raise NotConnectedError("Not connected to DogeHouse")

        await self.websocket.send(_encode(opcode, data, fetch_id))
        logger.debug("Sent op '%s' (fetchId=%s)", opcode, fetch_id)

    async def fetch(
        self,
        opcode: str,
        data: Any = None,
        done_opcode: Optional[str] = None,
    ) -> Any:
        """
        Send an op and wait for its reply.

        Without a done opcode, the request carries a fresh fetchId and the
        reply is the "fetch_done" message with the same fetchId. With a done
        opcode, the first message with that op is the reply.

        Args:
            opcode: The op to send
            data: The op payload
            done_opcode: Op that marks the reply, if not "fetch_done"

        Returns:
            The "d" payload of the reply

        Raises:
            NotConnectedError: If the connection is or becomes closed
            RequestTimeoutError: If no reply arrives within fetch_timeout
        """
        if self._closed:
            raise NotConnectedError("Not connected to DogeHouse")

        future = asyncio.get_running_loop().create_future()
        fetch_id = None if done_opcode else str(uuid.uuid4())

        def on_reply(reply: Any, arrived_id: Optional[str]) -> None:
            if done_opcode is None and arrived_id != fetch_id:
                return
            if not future.done():
                future.set_result(reply)

        unsubscribe = self.add_listener(done_opcode or "fetch_done", on_reply)
        self._pending.add(future)
        try:
            await self.send(opcode, data, fetch_id)
            return await asyncio.wait_for(future, self.fetch_timeout)
        except asyncio.TimeoutError:
            logger.error("Timed out waiting for reply to '%s'", opcode)
            raise RequestTimeoutError(opcode, self.fetch_timeout) from None
        finally:
            unsubscribe()
            self._pending.discard(future)

    async def close(self) -> None:
        """
        Close the connection.

        Closing an already closed connection is a no-op.
        """
        if self._closed:
            return
        self._closed = True

        if self._heartbeat:
            self._heartbeat.cancel()
        await self.websocket.close()
        self._fail_pending()

        running = [t for t in (self._reader, self._heartbeat) if t and not t.done()]
        if running:
            await asyncio.wait(running)
        logger.info("Connection closed")

    async def wait_closed(self) -> None:
        """
        Wait until the reader task ends.

        Re-raises the error raised by a close-code callback, such as a
        SessionCollisionError from the connection-taken callback.
        """
        if self._reader:
            await self._reader
        if self._error is not None:
            raise self._error

    async def _read_loop(self) -> None:
        """Receive messages until the socket closes, then handle the close."""
        try:
            async for raw in self.websocket:
                self._dispatch(raw)
        except websockets.exceptions.ConnectionClosed:
            logger.warning("Connection closed by server")
        self._handle_close(getattr(self.websocket, "close_code", None))

    async def _heartbeat_loop(self) -> None:
        """Send a ping frame every heartbeat_interval seconds."""
        try:
            while not self._closed:
                await asyncio.sleep(self.heartbeat_interval)
                await self.websocket.send("ping")
                logger.debug("Sent ping")
        except websockets.exceptions.ConnectionClosed:
            logger.debug("Heartbeat stopped: connection closed")

    def _dispatch(self, raw: str) -> None:
        """Route one inbound frame to the listeners of its op."""
        if raw == '"pong"':
            logger.debug("Received pong")
            return

        try:
            message = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse message JSON: %s", e)
            return

        opcode = message.get("op")
        data = message.get("d")
        fetch_id = message.get("fetchId")
        logger.debug("Received op '%s' (fetchId=%s)", opcode, fetch_id)

        if opcode == "new-tokens" and isinstance(data, dict):
            self.token = data.get("accessToken", self.token)
            self.refresh_token = data.get("refreshToken", self.refresh_token)

        for handler in list(self._listeners.get(opcode, [])):
            try:
                handler(data, fetch_id)
            except Exception:
                logger.exception("Error in '%s' listener", opcode)

    def _handle_close(self, code: Optional[int]) -> None:
        """
        Mark the connection closed and run the close-code callbacks.

        An error raised by a callback ends the reader quietly and is kept
        for wait_closed() to re-raise.
        """
        was_closed = self._closed
        self._closed = True
        if self._heartbeat:
            self._heartbeat.cancel()
        self._fail_pending()

        if was_closed:
            return

        logger.warning("Connection closed with code %s", code)
        if code == CLOSE_KICKED:
            logger.warning("Kicked from the server")
        try:
            if code == CLOSE_CONNECTION_TAKEN and self._on_connection_taken:
                self._on_connection_taken()
            elif code == CLOSE_INVALID_TOKENS and self._on_clear_tokens:
                self._on_clear_tokens()
        except Exception as e:
            logger.error("Close callback for code %s failed: %r", code, e)
            self._error = e

    def _fail_pending(self) -> None:
        """Fail every fetch still waiting for a reply."""
        for future in list(self._pending):
            if not future.done():
                future.set_exception(NotConnectedError("Connection closed"))
        self._pending.clear()


async def connect(
    token: str,
    refresh_token: str,
    *,
    url: str = BASE_URL,
    on_connection_taken: Optional[Callable[[], None]] = None,
    on_clear_tokens: Optional[Callable[[], None]] = None,
    fetch_timeout: Optional[float] = FETCH_TIMEOUT,
    connect_timeout: float = CONNECT_TIMEOUT,
    websocket_factory: Optional[Callable] = None,
) -> Connection:
    """
    Open and authenticate a connection to the real-time API.

    Args:
        token: Access token
        refresh_token: Refresh token
        url: WebSocket URL of the API
        on_connection_taken: Called when the server closes the socket
                             because the account logged in elsewhere
        on_clear_tokens: Called when the server rejects the tokens
        fetch_timeout: Seconds to wait for fetch replies
        connect_timeout: Seconds to wait for the "auth-good" reply
        websocket_factory: Optional factory for creating WebSocket
                           connections (for dependency injection/testing)

    Returns:
        An authenticated, running Connection

    Raises:
        ConnectionError: If the socket cannot be opened, closes during the
                         handshake, or auth does not complete in time
    """
    factory = websocket_factory or websockets.connect

    try:
        logger.info("Connecting to %s...", url)
        websocket = await factory(url)
    except Exception as e:
        logger.error("Failed to connect to DogeHouse: %s", e)
        raise ConnectionError(f"Could not connect to {url}: {e}") from e

    await websocket.send(
        _encode(
            "auth",
            {
                "accessToken": token,
                "refreshToken": refresh_token,
                "reconnectToVoice": False,
                "currentRoomId": None,
                "muted": False,
                "platform": PLATFORM,
            },
        )
    )

    try:
        auth = await asyncio.wait_for(_wait_for_auth(websocket), connect_timeout)
    except websockets.exceptions.ConnectionClosed:
        code = getattr(websocket, "close_code", None)
        logger.error("Connection closed during auth with code %s", code)
        if code == CLOSE_CONNECTION_TAKEN and on_connection_taken:
            on_connection_taken()
        elif code == CLOSE_INVALID_TOKENS and on_clear_tokens:
            on_clear_tokens()
        raise ConnectionError(f"Connection closed during auth (code {code})")
    except asyncio.TimeoutError:
        await websocket.close()
        raise ConnectionError("Timed out waiting for auth") from None

    connection = Connection(
        websocket,
        user=auth.get("user") or {},
        token=token,
        refresh_token=refresh_token,
        initial_current_room_id=(auth.get("currentRoom") or {}).get("id"),
        fetch_timeout=fetch_timeout,
        on_connection_taken=on_connection_taken,
        on_clear_tokens=on_clear_tokens,
    )
    connection.start()
    logger.info("Authenticated as %s", connection.user.get("username"))
    return connection


async def _wait_for_auth(websocket) -> Dict[str, Any]:
    """Receive frames until "auth-good" arrives and return its payload."""
    while True:
        raw = await websocket.recv()
        if raw == '"pong"':
            continue
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Skipping non-JSON frame during auth")
            continue
        if message.get("op") == "auth-good":
            return message.get("d") or {}
        logger.debug("Skipping '%s' while authenticating", message.get("op"))
