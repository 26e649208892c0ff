"""
Collection

An insertion-ordered mapping used to cache entities by identifier. It is a
plain ``dict`` with a few lookup helpers for entity caches.
"""

from typing import Callable, Dict, List, Optional, TypeVar

K = TypeVar("K")
V = TypeVar("V")


class Collection(Dict[K, V]):
    """
    Ordered map of entities keyed by id.

    Iteration, ``keys()`` and ``values()`` follow insertion order. Re-setting
    an existing key keeps its original position.

    Usage:
        rooms = Collection()
        rooms["room-1"] = room
        busiest = rooms.find(lambda r: r.num_people_inside > 10)
    """

    def first(self) -> Optional[V]:
        """Return the first inserted value, or None if empty."""
        return next(iter(self.values()), None)

    def last(self) -> Optional[V]:
        """Return the last inserted value, or None if empty."""
        return next(reversed(self.values()), None) if self else None

    def find(self, predicate: Callable[[V], bool]) -> Optional[V]:
        """
        Return the first value matching a predicate.

        Args:
            predicate: Function called with each value

        Returns:
            The first matching value, or None if nothing matches
        """
        for value in self.values():
            if predicate(value):
                return value
        return None

    def filter(self, predicate: Callable[[V], bool]) -> "Collection[K, V]":
        """Return a new collection holding the entries that match."""
        result: Collection[K, V] = Collection()
        for key, value in self.items():
            if predicate(value):
                result[key] = value
        return result

    def to_list(self) -> List[V]:
        """Return the values as a list, in insertion order."""
        return list(self.values())
