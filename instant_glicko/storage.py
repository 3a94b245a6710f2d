"""
Append-only storage with stable handles.

Handles are indices into a list that only grows, so a handle stays valid for
the lifetime of the store. Items are never removed.
"""

import itertools
from dataclasses import dataclass
from typing import Generic, Iterator, List, TypeVar

from .errors import UnknownPlayerError

T = TypeVar("T")

_store_ids = itertools.count(1)


@dataclass(frozen=True)
class PlayerHandle:
    """An opaque reference to a player, handed out by `RatingEngine`."""
    store_id: int
    index: int

    def __repr__(self) -> str:
        return f"PlayerHandle({self.index})"


class AppendOnlyStore(Generic[T]):
    """A list that only supports appending, addressed by `PlayerHandle`."""

    def __init__(self):
        self.store_id = next(_store_ids)
        self._items: List[T] = []

    def append(self, item: T) -> PlayerHandle:
        """Append an item and return its handle."""
        self._items.append(item)
        return PlayerHandle(self.store_id, len(self._items) - 1)

    def get(self, handle: PlayerHandle) -> T:
        """
        Look up an item.

        Raises:
            UnknownPlayerError: If the handle was not issued by this store.
        """
        if not isinstance(handle, PlayerHandle) or handle.store_id != self.store_id:
            raise UnknownPlayerError(f"{handle!r} does not belong to this engine")
        if not 0 <= handle.index < len(self._items):
            raise UnknownPlayerError(f"{handle!r} does not belong to this engine")
        return self._items[handle.index]

    def handle_at(self, index: int) -> PlayerHandle:
        """The handle for the item at `index`."""
        if not 0 <= index < len(self._items):
            raise UnknownPlayerError(f"No player at index {index}")
        return PlayerHandle(self.store_id, index)

    def handles(self) -> Iterator[PlayerHandle]:
        return (PlayerHandle(self.store_id, index) for index in range(len(self._items)))

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)
