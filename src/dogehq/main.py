#!/usr/bin/env python3
"""
dogehq Command Line

Logs in with the given tokens, prints the top rooms and then logs room
events until interrupted. Useful to check tokens and watch traffic.

Configuration:
    DOGEHOUSE_TOKEN          Access token (or --token)
    DOGEHOUSE_REFRESH_TOKEN  Refresh token (or --refresh-token)
    DOGEHOUSE_URL            WebSocket URL (or --url)
"""

import argparse
import asyncio
import logging
import os
import sys

from .client import Client
from .constants import BASE_URL
from .errors import DogeHouseError
from .events import ClientEvent

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments, defaulting to the environment."""
    parser = argparse.ArgumentParser(
        prog="dogehq", description="Watch DogeHouse room events"
    )
    parser.add_argument(
        "--token", default=os.environ.get("DOGEHOUSE_TOKEN", ""), help="Access token"
    )
    parser.add_argument(
        "--refresh-token",
        default=os.environ.get("DOGEHOUSE_REFRESH_TOKEN", ""),
        help="Refresh token",
    )
    parser.add_argument("--url", default=BASE_URL, help="WebSocket URL")
    parser.add_argument("--room", help="ID of a room to join after login")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace) -> None:
    """Log in, print the top rooms and log events until the connection ends."""
    async with Client(url=args.url) as client:

        @client.on(ClientEvent.READY)
        def ready():
            print(f"Logged in as {client.user.username}")
            for room in client.rooms.values():
                print(f"  {room.id}  {room.name} ({room.num_people_inside} inside)")

        @client.on(ClientEvent.MESSAGE)
        def message(msg):
            print(f"[{msg.username}] {msg.content}")

        @client.on(ClientEvent.USER_JOIN)
        def user_join(user):
            print(f"--> {user.username} joined")

        @client.on(ClientEvent.USER_LEAVE)
        def user_leave(user, room):
            name = user.username if user else "unknown user"
            print(f"<-- {name} left")

        await client.login(args.token, args.refresh_token)
        if args.room:
            await client.join_room(args.room)
        await client.wait_until_closed()


def main(argv=None):
    """Main entry point for the dogehq command."""
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(run(args))
    except DogeHouseError as e:
        logger.error("%s", e)
        sys.exit(1)
    except ConnectionError as e:
        logger.error("Connection failed: %s", e)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nExiting...")
        sys.exit(0)


if __name__ == "__main__":
    main()
