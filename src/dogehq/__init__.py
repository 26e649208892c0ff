"""
dogehq: Python SDK for the DogeHouse real-time API

This package exposes rooms, users and chat messages as an event-driven
object model. The Client owns the connection, keeps entity caches and
emits domain events.

Quick start::

    import asyncio
    from dogehq import Client, ClientEvent

    client = Client()

    @client.on(ClientEvent.MESSAGE)
    async def on_message(message):
        if message.content == "!ping":
            await message.reply("pong")

    asyncio.run(client.login("token", "refresh-token"))
"""

from .client import Client, ClientState, Interval
from .collection import Collection
from .connection import Connection, connect
from .constants import API_URL, BASE_URL
from .errors import (
    ClientDestroyedError,
    DogeHouseError,
    InvalidCredentialsError,
    NotConnectedError,
    RequestTimeoutError,
    SessionCollisionError,
    UsernameTakenError,
)
from .events import ClientEvent, EventEmitter
from .schemas import BotCredentials, CreateBotResponse
from .structures import ClientUser, Message, Room, ScheduledRoom, User
from .util import tokenize, tokens_to_string
from .wrapper import Wrapper, wrap

__version__ = "1.7.0"

__all__ = [
    # Client
    "Client",
    "ClientState",
    "Interval",
    # Transport
    "Connection",
    "connect",
    "Wrapper",
    "wrap",
    # Structures
    "ClientUser",
    "Message",
    "Room",
    "ScheduledRoom",
    "User",
    # Schemas
    "BotCredentials",
    "CreateBotResponse",
    # Events
    "ClientEvent",
    "EventEmitter",
    # Errors
    "DogeHouseError",
    "ClientDestroyedError",
    "InvalidCredentialsError",
    "NotConnectedError",
    "RequestTimeoutError",
    "SessionCollisionError",
    "UsernameTakenError",
    # Utils
    "Collection",
    "tokenize",
    "tokens_to_string",
    "API_URL",
    "BASE_URL",
]
