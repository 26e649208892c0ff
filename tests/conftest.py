"""
Shared fixtures for the dogehq tests.

FakeWebSocket plays the server side of the DogeHouse op protocol in memory:
it answers "auth" with "auth-good", answers requests from a table of canned
replies and lets tests push inbound events or close the socket.
"""

import asyncio
import json

import pytest
import pytest_asyncio
from websockets.exceptions import ConnectionClosedError
from websockets.frames import Close

from dogehq import Client

_CLOSED = object()

USER = {
    "id": "user-1",
    "username": "doge",
    "displayName": "Doge",
    "avatarUrl": "https://example.com/doge.png",
    "bio": "such wow",
    "online": True,
    "numFollowers": 3,
    "numFollowing": 1,
}

ROOMS = [
    {
        "id": "room-1",
        "name": "General",
        "description": "Talk about anything",
        "numPeopleInside": 12,
        "isPrivate": False,
        "creatorId": "user-9",
        "peoplePreviewList": [],
        "voiceServerId": "vs-1",
        "inserted_at": "2021-03-01T10:00:00Z",
    },
    {
        "id": "room-2",
        "name": "Python",
        "description": "",
        "numPeopleInside": 4,
        "isPrivate": False,
        "creatorId": "user-8",
    },
]


class FakeWebSocket:
    """In-memory WebSocket speaking the server side of the op protocol."""

    def __init__(self, user=None, auth=True):
        self.user = user or USER
        self.auth = auth
        self.sent = []
        self.replies = {"get_top_public_rooms": {"rooms": ROOMS, "nextCursor": None}}
        # Ops answered with a named op instead of fetch_done
        self.done_ops = {"leave_room": "you_left_room"}
        self.close_code = None
        self.close_calls = 0
        self._queue = None

    @property
    def _incoming(self):
        # Created lazily so the queue binds to the running test loop
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue

    def push(self, opcode, data, fetch_id=None):
        """Queue an inbound message for the client."""
        message = {"op": opcode, "d": data}
        if fetch_id:
            message["fetchId"] = fetch_id
        self._incoming.put_nowait(json.dumps(message))

    def push_raw(self, raw):
        self._incoming.put_nowait(raw)

    def server_close(self, code):
        """Simulate the server closing the socket with a close code."""
        self.close_code = code
        self._incoming.put_nowait(_CLOSED)

    def sent_ops(self):
        return [m["op"] for m in self.sent if isinstance(m, dict)]

    async def send(self, raw):
        if raw == "ping":
            self.sent.append(raw)
            return

        message = json.loads(raw)
        self.sent.append(message)
        opcode = message["op"]

        if opcode == "auth":
            if self.auth:
                self.push("auth-good", {"user": self.user, "currentRoom": None})
            return

        if opcode not in self.replies:
            return
        reply = self.replies[opcode]
        if callable(reply):
            reply = reply(message.get("d"))

        if opcode in self.done_ops:
            self.push(self.done_ops[opcode], reply)
        elif "fetchId" in message:
            self.push("fetch_done", reply, message["fetchId"])

    async def recv(self):
        item = await self._incoming.get()
        if item is _CLOSED:
            raise ConnectionClosedError(Close(self.close_code, ""), None)
        return item

    async def close(self):
        self.close_calls += 1
        if self.close_code is None:
            self.close_code = 1000
            self._incoming.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._incoming.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        return item


class FakeFactory:
    """websocket_factory that hands out one FakeWebSocket and records calls."""

    def __init__(self, websocket):
        self.websocket = websocket
        self.urls = []

    async def __call__(self, url):
        self.urls.append(url)
        return self.websocket


async def _settle(rounds=10):
    """Let the reader task dispatch everything queued so far."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def settle():
    return _settle


@pytest.fixture
def fake_ws():
    return FakeWebSocket()


@pytest.fixture
def factory(fake_ws):
    return FakeFactory(fake_ws)


@pytest_asyncio.fixture
async def client(factory):
    """A client wired to the fake websocket, destroyed after the test."""
    client = Client(url="wss://test.invalid/socket", websocket_factory=factory)
    yield client
    await client.destroy()


@pytest_asyncio.fixture
async def logged_in(client):
    """A client that has completed login against the fake websocket."""
    await client.login("token", "refresh")
    return client
