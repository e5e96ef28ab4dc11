"""In-memory change feed holding the authoritative copy of one collection."""

from typing import Callable, Generic, Iterable

import structlog

from src.feed.change_feed import ChangeFeed, NetworkT
from src.models.change_list import ChangeListItem

log = structlog.stdlib.get_logger()


class InMemoryChangeFeed(ChangeFeed[NetworkT], Generic[NetworkT]):
    """Change feed over an in-process list of entities.

    Starts with one change per entity at versions 1..N in list order. Each
    edit bumps the version by one and moves the edited id's entry to the end
    of the change list, so the list always holds exactly one entry per id
    carrying its most recent state.

    Deleting an id only records the change; the entity stays in
    ``all_entities`` and can still be fetched by id, the same way a remote
    source keeps tombstoned rows around.
    """

    def __init__(
        self,
        entities: Iterable[NetworkT] = (),
        id_getter: Callable[[NetworkT], str] = lambda entity: entity.id,
    ):
        self._id_getter = id_getter
        self._entities: list[NetworkT] = list(entities)
        self._change_list: list[ChangeListItem] = [
            ChangeListItem(id=id_getter(entity), change_list_version=index + 1, is_delete=False)
            for index, entity in enumerate(self._entities)
        ]

    async def get_change_list(
        self, since: int, limit: int | None = None
    ) -> list[ChangeListItem]:
        changes = self.change_list(after=since)
        if limit is not None:
            changes = changes[:limit]
        return changes

    async def latest_version(self) -> int:
        return self.latest_change_list_version()

    async def fetch_entities(self, ids: Iterable[str]) -> list[NetworkT]:
        wanted = set(ids)
        return [entity for entity in self._entities if self._id_getter(entity) in wanted]

    # Remote-side helpers used to simulate edits

    def change_list(self, after: int | None = None) -> list[ChangeListItem]:
        if after is None:
            return list(self._change_list)
        return [item for item in self._change_list if item.change_list_version > after]

    def latest_change_list_version(self) -> int:
        if not self._change_list:
            return 0
        return self._change_list[-1].change_list_version

    def all_entities(self) -> list[NetworkT]:
        return list(self._entities)

    def edit_collection(self, id: str, is_delete: bool) -> ChangeListItem:
        """Record a change for ``id`` at the next version."""
        change = ChangeListItem(
            id=id,
            change_list_version=self.latest_change_list_version() + 1,
            is_delete=is_delete,
        )
        self._change_list = [item for item in self._change_list if item.id != id] + [change]
        log.debug(
            "feed_collection_edited",
            entity_id=id,
            version=change.change_list_version,
            is_delete=is_delete,
        )
        return change

    def put_entity(self, entity: NetworkT) -> ChangeListItem:
        """Add or replace an entity's payload and record it as changed."""
        entity_id = self._id_getter(entity)
        replaced = False
        for index, existing in enumerate(self._entities):
            if self._id_getter(existing) == entity_id:
                self._entities[index] = entity
                replaced = True
                break
        if not replaced:
            self._entities.append(entity)
        return self.edit_collection(entity_id, is_delete=False)
