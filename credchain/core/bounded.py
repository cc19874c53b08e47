from __future__ import annotations

from collections.abc import Hashable

from credchain.core.errors import CapacityExceeded, LedgerError


class BoundedIndex:
    """Per-key list of record ids with a hard ceiling.

    A full key is a failure of the operation that tried to grow it,
    never a silent truncation.  Stores call ``ensure_room`` with their
    own error before writing anything, then ``append`` once every other
    check has passed.
    """

    def __init__(self, limit: int) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self.limit = limit
        self._lists: dict[Hashable, list[int]] = {}

    def get(self, key: Hashable) -> tuple[int, ...]:
        return tuple(self._lists.get(key, ()))

    def has_room(self, key: Hashable) -> bool:
        return len(self._lists.get(key, ())) < self.limit

    def ensure_room(self, key: Hashable, error: LedgerError) -> None:
        if not self.has_room(key):
            raise error

    def append(self, key: Hashable, value: int) -> None:
        if not self.has_room(key):
            raise CapacityExceeded(0, f"index for {key!r} is full ({self.limit})")
        self._lists.setdefault(key, []).append(value)

    def __len__(self) -> int:
        return len(self._lists)
