"""
Tests for the entity structures

Tests for Room, User, ClientUser, Message and ScheduledRoom including:
- Payload accessors
- The requests their convenience methods send
- The weak back-reference to the client
"""

import gc

import pytest

from dogehq import (
    Client,
    DogeHouseError,
    Message,
    NotConnectedError,
    Room,
    ScheduledRoom,
    User,
    UsernameTakenError,
)


# Room Tests


@pytest.mark.asyncio
async def test_room_fields(logged_in):
    """Test that the room payload is exposed as attributes."""
    room = logged_in.rooms["room-1"]

    assert room.name == "General"
    assert room.description == "Talk about anything"
    assert room.num_people_inside == 12
    assert room.is_private is False
    assert room.voice_server_id == "vs-1"
    assert room.created_at == "2021-03-01T10:00:00Z"
    assert room.creator is None
    assert str(room) == "General"
    assert room.raw["id"] == "room-1"


@pytest.mark.asyncio
async def test_room_join(logged_in, fake_ws):
    """Test that Room.join joins through the client."""
    fake_ws.replies["join_room_and_get_info"] = lambda data: {
        "room": {"id": data["roomId"], "name": "Python"}
    }

    room = await logged_in.rooms["room-2"].join()

    assert room == logged_in.rooms["room-2"]
    assert fake_ws.sent[-1]["d"] == {"roomId": "room-2"}


# User Tests


@pytest.mark.asyncio
async def test_user_fields_and_follow(logged_in, fake_ws):
    """Test user accessors and follow/unfollow requests."""
    fake_ws.replies["follow"] = {}
    user = User(
        logged_in,
        {"id": "user-2", "username": "shiba", "botOwnerId": "user-1", "numFollowers": 7},
    )

    assert user.display_name == "shiba"
    assert user.num_followers == 7
    assert user.is_bot
    assert user.mention == "@shiba"

    await user.follow()
    assert fake_ws.sent[-1]["d"] == {"userId": "user-2", "value": True}
    await user.unfollow()
    assert fake_ws.sent[-1]["d"] == {"userId": "user-2", "value": False}


@pytest.mark.asyncio
async def test_user_block_from_room(logged_in, fake_ws):
    user = User(logged_in, {"id": "user-2", "username": "shiba"})

    await user.block_from_room()

    assert fake_ws.sent[-1] == {"op": "block_from_room", "d": {"userId": "user-2"}}


@pytest.mark.asyncio
async def test_user_requires_login():
    """Test that structure requests fail when the client is not logged in."""
    client = Client()
    user = User(client, {"id": "user-2", "username": "shiba"})

    with pytest.raises(NotConnectedError):
        await user.follow()


def test_structure_holds_weak_client_reference():
    """Test that structures do not keep their client alive."""
    client = Client()
    room = Room(client, {"id": "room-1", "name": "General"})

    del client
    gc.collect()

    with pytest.raises(DogeHouseError):
        room.client


# ClientUser Tests


@pytest.mark.asyncio
async def test_client_user_edit_profile(logged_in, fake_ws):
    """Test that profile edits map to the payload keys."""
    fake_ws.replies["edit_profile"] = {"isUsernameTaken": False}

    await logged_in.user.edit_profile(display_name="Doge!", bio="wow")

    assert fake_ws.sent[-1]["d"] == {"data": {"displayName": "Doge!", "bio": "wow"}}


@pytest.mark.asyncio
async def test_client_user_edit_profile_errors(logged_in, fake_ws):
    """Test unknown fields and taken usernames."""
    fake_ws.replies["edit_profile"] = {"isUsernameTaken": True}

    with pytest.raises(ValueError):
        await logged_in.user.edit_profile(nickname="x")
    with pytest.raises(UsernameTakenError, match="shiba"):
        await logged_in.user.edit_profile(username="shiba")


@pytest.mark.asyncio
async def test_client_user_speaking_and_messages(logged_in, fake_ws):
    await logged_in.user.ask_to_speak()
    assert fake_ws.sent[-1]["op"] == "ask_to_speak"

    await logged_in.user.send_message("much chat")
    assert fake_ws.sent[-1]["op"] == "send_room_chat_msg"


# Message Tests


@pytest.mark.asyncio
async def test_message_author_reply_and_delete(logged_in, fake_ws):
    """Test message accessors and the requests it sends."""
    author = User(logged_in, {"id": "user-2", "username": "shiba"})
    logged_in.users[author.id] = author
    message = Message(
        logged_in,
        {
            "id": "msg-1",
            "userId": "user-2",
            "username": "shiba",
            "tokens": [{"t": "text", "v": "wow"}],
            "isWhisper": True,
        },
    )

    assert message.author is author
    assert message.content == "wow"
    assert message.is_whisper

    await message.reply("such reply")
    assert fake_ws.sent[-1]["d"]["tokens"][0] == {"t": "mention", "v": "shiba"}

    await message.delete()
    assert fake_ws.sent[-1] == {
        "op": "delete_room_chat_message",
        "d": {"userId": "user-2", "messageId": "msg-1"},
    }


# ScheduledRoom Tests


@pytest.mark.asyncio
async def test_scheduled_room(logged_in, fake_ws):
    """Test scheduled room accessors, edit and delete."""
    fake_ws.replies["edit_scheduled_room"] = {}
    fake_ws.replies["delete_scheduled_room"] = {}
    room = ScheduledRoom(
        logged_in,
        {
            "id": "sched-1",
            "name": "Launch party",
            "scheduledFor": "2021-04-01T18:00:00Z",
            "creatorId": "user-1",
            "creator": {"id": "user-1", "username": "doge"},
            "roomId": None,
        },
    )

    assert not room.started
    assert room.creator.username == "doge"

    await room.edit(name="Launch", scheduled_for="2021-04-02T18:00:00Z")
    assert fake_ws.sent[-1]["d"] == {
        "id": "sched-1",
        "data": {"name": "Launch", "scheduledFor": "2021-04-02T18:00:00Z"},
    }

    await room.delete()
    assert fake_ws.sent[-1]["d"] == {"id": "sched-1"}

    with pytest.raises(ValueError):
        await room.edit(capacity=10)
