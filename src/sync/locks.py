"""Per-collection serialization of sync passes."""

import asyncio


class CollectionLocks:
    """One asyncio lock per collection name.

    Passes for different collections never wait on each other. Two passes
    for the same collection run one after the other, which keeps cursor
    reads and writes from interleaving.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}

    def lock_for(self, collection: str) -> asyncio.Lock:
        lock = self._locks.get(collection)
        if lock is None:
            lock = self._locks[collection] = asyncio.Lock()
        return lock

    def is_locked(self, collection: str) -> bool:
        lock = self._locks.get(collection)
        return lock is not None and lock.locked()
