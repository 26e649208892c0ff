"""
Base Structure

Common behaviour for the entity structures: each wraps a raw payload and
keeps a weak reference to the Client that created it, which it uses to
issue further calls.
"""

import weakref
from typing import TYPE_CHECKING, Any, Dict

from ..errors import DogeHouseError

if TYPE_CHECKING:
    from ..client import Client
    from ..wrapper import Wrapper


class Base:
    """
    Base class for entity structures.

    Attributes:
        raw: The payload the structure was built from
    """

    def __init__(self, client: "Client", data: Dict[str, Any]):
        self._client_ref = weakref.ref(client)
        self.raw = data

    @property
    def client(self) -> "Client":
        """The Client this structure belongs to."""
        client = self._client_ref()
        if client is None:
            raise DogeHouseError("The client this structure belongs to is gone")
        return client

    @property
    def _wrapper(self) -> "Wrapper":
        return self.client._require_wrapper()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.id))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"
