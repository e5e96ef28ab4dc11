"""Local store interface and the in-memory implementation."""

from abc import ABC, abstractmethod
from typing import Generic, Iterable, TypeVar

import structlog

from src.models.entities import SyncEntity

log = structlog.stdlib.get_logger()

EntityT = TypeVar("EntityT", bound=SyncEntity)


class LocalStore(ABC, Generic[EntityT]):
    """Abstract interface for the local persisted collection.

    Both mutations are keyed by id and idempotent, which is what makes a
    retried or partially applied sync pass safe.

    Snapshot order is insertion/update order: the most recently upserted
    batch first (in batch order), followed by the entities that were
    already stored, in their previous order. Callers must not assume the
    snapshot is sorted by id.
    """

    @abstractmethod
    async def upsert_all(self, entities: Iterable[EntityT]) -> None:
        """Insert or overwrite entities by id.

        Raises:
            LocalStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_all(self, ids: Iterable[str]) -> None:
        """Delete entities by id. Ids that are not present are ignored.

        Raises:
            LocalStoreError: If the write fails
        """
        pass

    @abstractmethod
    async def snapshot(self) -> list[EntityT]:
        """Return the current contents in snapshot order.

        Raises:
            LocalStoreError: If the read fails
        """
        pass

    async def ids(self) -> list[str]:
        """Return the ids of the current contents in snapshot order."""
        return [entity.id for entity in await self.snapshot()]


class InMemoryLocalStore(LocalStore[EntityT]):
    """Local store kept in a plain list, lost on restart."""

    def __init__(self, name: str = "in_memory"):
        self._name = name
        self._entities: list[EntityT] = []

    async def upsert_all(self, entities: Iterable[EntityT]) -> None:
        batch: dict[str, EntityT] = {}
        for entity in entities:
            # later duplicates in one batch win, but keep first position
            batch[entity.id] = entity

        self._entities = list(batch.values()) + [
            entity for entity in self._entities if entity.id not in batch
        ]
        log.debug("in_memory_upsert", store=self._name, count=len(batch))

    async def delete_all(self, ids: Iterable[str]) -> None:
        doomed = set(ids)
        before = len(self._entities)
        self._entities = [entity for entity in self._entities if entity.id not in doomed]
        log.debug("in_memory_delete", store=self._name, deleted=before - len(self._entities))

    async def snapshot(self) -> list[EntityT]:
        return list(self._entities)
