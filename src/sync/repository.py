"""Offline-first repository: reads come from the local store, sync refreshes it."""

from typing import Callable, Generic, TypeVar

from pydantic import BaseModel

from src.storage.local_store import EntityT, LocalStore
from src.sync.delta_synchronizer import DeltaSynchronizer
from src.sync.models import CollectionSyncReport

ExternalT = TypeVar("ExternalT", bound=BaseModel)


class OfflineFirstRepository(Generic[EntityT, ExternalT]):
    """Read access to one synchronized collection.

    Readers always get whatever is stored locally, in snapshot order,
    mapped to the external model; they never wait on the network.
    """

    def __init__(
        self,
        collection: str,
        store: LocalStore[EntityT],
        as_external: Callable[[EntityT], ExternalT],
    ):
        self._collection = collection
        self._store = store
        self._as_external = as_external

    @property
    def collection(self) -> str:
        return self._collection

    async def get_items(self) -> list[ExternalT]:
        return [self._as_external(entity) for entity in await self._store.snapshot()]

    async def get_item(self, id: str) -> ExternalT | None:
        for entity in await self._store.snapshot():
            if entity.id == id:
                return self._as_external(entity)
        return None

    async def sync_with(self, synchronizer: DeltaSynchronizer) -> CollectionSyncReport:
        return await synchronizer.sync(self._collection)
