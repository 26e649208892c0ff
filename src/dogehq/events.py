"""
Client Events

This module defines the domain events emitted by the Client and the event
emitter the Client owns to dispatch them.

Event payloads:
    ready        -> ()
    user_join    -> (user: User)
    message      -> (message: Message)
    user_leave   -> (user: Optional[User], room: Optional[Room])
    hand_raised  -> (user: Optional[User])
    invite       -> (invite: dict)
    join_room    -> (room: Room)
    leave_room   -> (room: Optional[Room])

Listeners may be plain functions or coroutine functions. Coroutine listeners
are scheduled as tasks on the running event loop.
"""

import asyncio
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Set, Tuple, Union

logger = logging.getLogger(__name__)


class ClientEvent(str, Enum):
    """Names of the events emitted by the Client."""

    READY = "ready"
    USER_JOIN = "user_join"
    MESSAGE = "message"
    USER_LEAVE = "user_leave"
    HAND_RAISED = "hand_raised"
    INVITE = "invite"
    JOIN_ROOM = "join_room"
    LEAVE_ROOM = "leave_room"


EventName = Union[ClientEvent, str]
Listener = Callable[..., Any]


def _event_key(event: EventName) -> ClientEvent:
    """Normalize an event name to a ClientEvent, rejecting unknown names."""
    try:
        return ClientEvent(event)
    except ValueError:
        raise ValueError(f"Unknown event: {event!r}") from None


class EventEmitter:
    """
    Publish/subscribe dispatcher keyed by ClientEvent.

    Emitting an event with no listeners is a no-op; nothing is buffered for
    listeners registered later.

    Attributes:
        _listeners: Maps each event to its (listener, once) registrations,
            in registration order
        _tasks: Pending tasks created for coroutine listeners
    """

    def __init__(self):
        self._listeners: Dict[ClientEvent, List[Tuple[Listener, bool]]] = {}
        self._tasks: Set[asyncio.Task] = set()

    def on(self, event: EventName, listener: Listener) -> Listener:
        """
        Register a listener for an event.

        Args:
            event: Event name
            listener: Callable invoked with the event payload

        Returns:
            The listener, so this can be used as a decorator factory
        """
        return self._add(event, listener, False)

    def once(self, event: EventName, listener: Listener) -> Listener:
        """Register a listener that is removed after its first call."""
        return self._add(event, listener, True)

    def off(self, event: EventName, listener: Listener) -> None:
        """Remove a listener. Removing an unknown listener is a no-op."""
        registrations = self._listeners.get(_event_key(event), [])
        for registration in registrations:
            if registration[0] == listener:
                registrations.remove(registration)
                return

    def remove_all_listeners(self, event: EventName = None) -> None:
        """Remove every listener, or only the listeners of one event."""
        if event is None:
            self._listeners.clear()
        else:
            self._listeners.pop(_event_key(event), None)

    def listener_count(self, event: EventName) -> int:
        """Return the number of listeners registered for an event."""
        return len(self._listeners.get(_event_key(event), []))

    def emit(self, event: EventName, *args: Any) -> bool:
        """
        Call every listener of an event with the given payload.

        Exceptions raised by plain listeners propagate to the caller.

        Args:
            event: Event name
            *args: Event payload

        Returns:
            True if the event had listeners, False otherwise
        """
        key = _event_key(event)
        registrations = self._listeners.get(key, [])
        if not registrations:
            return False

        for registration in list(registrations):
            listener, once = registration
            if once:
                if registration not in registrations:
                    continue
                registrations.remove(registration)
            result = listener(*args)
            if inspect.isawaitable(result):
                self._schedule(key, result)
        return True

    def _add(self, event: EventName, listener: Listener, once: bool) -> Listener:
        self._listeners.setdefault(_event_key(event), []).append((listener, once))
        return listener

    def _schedule(self, event: ClientEvent, awaitable) -> None:
        """Run a coroutine listener as a task and log its failure."""
        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)

        def _done(finished: asyncio.Future) -> None:
            self._tasks.discard(finished)
            if not finished.cancelled() and finished.exception():
                logger.error(
                    "Listener for '%s' failed: %s",
                    event.value,
                    finished.exception(),
                )

        task.add_done_callback(_done)
