"""Delta synchronizer: applies a collection's change feed to its local store."""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Callable, Generic, TypeVar

import structlog

from src.feed.change_feed import ChangeFeed, NetworkT
from src.models.config import SyncConfig
from src.storage.cursor_store import VersionCursor
from src.storage.local_store import EntityT, LocalStore
from src.sync.change_partitioner import ChangePartitioner
from src.sync.locks import CollectionLocks
from src.sync.models import ChangeSet, CollectionSyncReport
from src.utils.errors import (
    FeedError,
    FeedInconsistencyError,
    LocalStoreError,
    SyncError,
    TransientNetworkError,
    TruncatedFeedError,
    UnknownCollectionError,
)

log = structlog.stdlib.get_logger()

T = TypeVar("T")


def _identity(entity: Any) -> Any:
    return entity


@dataclass(frozen=True)
class CollectionBinding(Generic[NetworkT, EntityT]):
    """The feed, store and network-to-local mapper used for one collection."""

    collection: str
    feed: ChangeFeed[NetworkT]
    store: LocalStore[EntityT]
    mapper: Callable[[NetworkT], EntityT] = _identity


@dataclass
class _PassOutcome:
    base_version: int
    cursor_version: int
    upserted: int = 0
    deleted: int = 0
    truncated: bool = False
    warnings: list[str] = field(default_factory=list)


class DeltaSynchronizer:
    """Runs incremental sync passes for registered collections.

    A pass reads the collection's cursor and the feed's latest version, asks
    the feed for everything that changed since the cursor, fetches the
    updated entities in one batch, applies upserts then deletes to the
    local store and finally writes the cursor.
    All remote reads happen before the first local write, and the cursor is
    written last, so a pass that fails or is cancelled never advances the
    cursor past changes it did not apply.
    """

    def __init__(
        self,
        cursor: VersionCursor,
        page_size: int | None = None,
        max_follow_up_passes: int = 5,
        feed_timeout_seconds: float | None = 60.0,
        locks: CollectionLocks | None = None,
        partitioner: ChangePartitioner | None = None,
    ):
        """
        Initialize the synchronizer.

        Args:
            cursor: Persisted per-collection version cursor
            page_size: Optional cap on change-list items requested per pass
            max_follow_up_passes: Extra passes run when a change list is truncated
            feed_timeout_seconds: Upper bound for each remote call, None for no bound
            locks: Per-collection locks, shared when several synchronizers
                write the same collections
            partitioner: Change partitioner (a default one is created if None)
        """
        if page_size is not None and page_size < 1:
            raise ValueError("page_size must be at least 1")
        if max_follow_up_passes < 0:
            raise ValueError("max_follow_up_passes cannot be negative")

        self._cursor = cursor
        self._page_size = page_size
        self._max_follow_up_passes = max_follow_up_passes
        self._feed_timeout = feed_timeout_seconds
        self._locks = locks or CollectionLocks()
        self._partitioner = partitioner or ChangePartitioner()
        self._bindings: dict[str, CollectionBinding] = {}

        log.info(
            "delta_synchronizer_initialized",
            page_size=page_size,
            max_follow_up_passes=max_follow_up_passes,
        )

    @classmethod
    def from_config(
        cls, cursor: VersionCursor, config: SyncConfig, locks: CollectionLocks | None = None
    ) -> "DeltaSynchronizer":
        return cls(
            cursor=cursor,
            page_size=config.page_size,
            max_follow_up_passes=config.max_follow_up_passes,
            feed_timeout_seconds=config.feed_timeout_seconds,
            locks=locks,
        )

    def register(
        self,
        collection: str,
        feed: ChangeFeed[NetworkT],
        store: LocalStore[EntityT],
        mapper: Callable[[NetworkT], EntityT] | None = None,
    ) -> CollectionBinding[NetworkT, EntityT]:
        """Bind a collection name to its feed, local store and mapper.

        Registering a collection again replaces its binding.
        """
        binding = CollectionBinding(
            collection=collection,
            feed=feed,
            store=store,
            mapper=mapper or _identity,
        )
        self._bindings[collection] = binding
        log.info("collection_registered", collection=collection)
        return binding

    @property
    def collections(self) -> list[str]:
        """Registered collection names, in registration order."""
        return list(self._bindings)

    def binding(self, collection: str) -> CollectionBinding:
        try:
            return self._bindings[collection]
        except KeyError:
            raise UnknownCollectionError(
                f"No binding registered for collection '{collection}'", collection
            )

    async def sync(self, collection: str) -> CollectionSyncReport:
        """
        Bring one collection's local store up to date with its change feed.

        Passes for the same collection are serialized. When a change list
        stops short of the latest version (our page size or a server-side
        cap), the cursor only advances to the highest version seen and
        follow-up passes run until the feed is drained or the follow-up
        budget runs out.

        Args:
            collection: Registered collection name

        Returns:
            CollectionSyncReport describing what was applied

        Raises:
            UnknownCollectionError: If the collection is not registered
            TransientNetworkError: On retryable feed failures (cursor untouched)
            FeedError: On other feed failures (cursor untouched)
            LocalStoreError: On local write failures (cursor untouched)
        """
        binding = self.binding(collection)

        with structlog.contextvars.bound_contextvars(collection=collection):
            async with self._locks.lock_for(collection):
                start_time = datetime.now()
                log.info("sync_started", start_time=start_time)

                outcomes: list[_PassOutcome] = []
                try:
                    while True:
                        outcome = await self._run_pass(binding)
                        outcomes.append(outcome)
                        if not outcome.truncated:
                            break
                        if len(outcomes) > self._max_follow_up_passes:
                            error = TruncatedFeedError(
                                f"Change list still truncated after {len(outcomes)} passes; "
                                f"cursor left at {outcome.cursor_version}",
                                collection,
                            )
                            log.warning("follow_up_budget_exhausted", error=str(error))
                            outcome.warnings.append(str(error))
                            break
                        log.info("follow_up_pass_scheduled", cursor_version=outcome.cursor_version)
                except SyncError as e:
                    log.error(
                        "sync_failed",
                        error=str(e),
                        error_kind=e.kind,
                        retryable=e.retryable,
                        passes_completed=len(outcomes),
                    )
                    raise

                end_time = datetime.now()
                report = CollectionSyncReport(
                    collection=collection,
                    base_version=outcomes[0].base_version,
                    cursor_version=outcomes[-1].cursor_version,
                    entities_upserted=sum(outcome.upserted for outcome in outcomes),
                    entities_deleted=sum(outcome.deleted for outcome in outcomes),
                    passes=len(outcomes),
                    complete=not outcomes[-1].truncated,
                    warnings=[warning for outcome in outcomes for warning in outcome.warnings],
                    duration_seconds=(end_time - start_time).total_seconds(),
                    start_time=start_time,
                    end_time=end_time,
                )

                log.info(
                    "sync_completed",
                    base_version=report.base_version,
                    cursor_version=report.cursor_version,
                    entities_upserted=report.entities_upserted,
                    entities_deleted=report.entities_deleted,
                    passes=report.passes,
                    complete=report.complete,
                    warnings=len(report.warnings),
                    duration_seconds=report.duration_seconds,
                )
                return report

    async def _run_pass(self, binding: CollectionBinding) -> _PassOutcome:
        collection = binding.collection

        base_version = await self._local(
            collection, "read_cursor", lambda: self._cursor.get(collection)
        )
        # read before the change list: edits landing during the pass get higher versions
        latest_version = await self._remote(
            collection, "latest_version", lambda: binding.feed.latest_version()
        )
        changes = await self._remote(
            collection,
            "get_change_list",
            lambda: binding.feed.get_change_list(base_version, self._page_size),
        )
        log.info("change_list_received", base_version=base_version, change_count=len(changes))

        change_set = self._partitioner.partition(changes)
        outcome = _PassOutcome(base_version=base_version, cursor_version=base_version)
        if change_set.conflicting_ids:
            outcome.warnings.append(
                str(
                    FeedInconsistencyError(
                        f"Ids {change_set.conflicting_ids} were reported both updated and "
                        f"deleted; applied as deletes",
                        collection,
                    )
                )
            )

        entities = []
        if change_set.updated_ids:
            entities = await self._fetch_entities(binding, change_set.updated_ids)

        if entities:
            await self._local(collection, "upsert_all", lambda: binding.store.upsert_all(entities))
            outcome.upserted = len(entities)

        if change_set.deleted_ids:
            await self._local(
                collection, "delete_all", lambda: binding.store.delete_all(change_set.deleted_ids)
            )
            outcome.deleted = len(change_set.deleted_ids)

        next_version = self._next_cursor(
            outcome, change_set, len(changes), latest_version, collection
        )
        await self._local(
            collection, "write_cursor", lambda: self._cursor.set(collection, next_version)
        )
        outcome.cursor_version = next_version

        log.info(
            "cursor_advanced",
            from_version=base_version,
            to_version=next_version,
            latest_version=latest_version,
            truncated=outcome.truncated,
        )
        return outcome

    async def _fetch_entities(self, binding: CollectionBinding, ids: list[str]) -> list[Any]:
        collection = binding.collection
        network_entities = await self._remote(
            collection, "fetch_entities", lambda: binding.feed.fetch_entities(ids)
        )

        requested = set(ids)
        mapped = []
        unexpected = []
        for network_entity in network_entities:
            try:
                entity = binding.mapper(network_entity)
            except Exception as e:
                log.error("entity_mapping_failed", error=str(e))
                raise FeedError(f"Failed to map fetched entity: {e}", collection) from e
            if entity.id in requested:
                mapped.append(entity)
            else:
                unexpected.append(entity.id)

        if unexpected:
            log.warning("unrequested_entities_ignored", entity_ids=unexpected)
        if len(mapped) < len(requested):
            # already deleted remotely; the next change list will carry the delete
            log.info("entities_missing_from_batch", missing=len(requested) - len(mapped))

        return mapped

    def _next_cursor(
        self,
        outcome: _PassOutcome,
        change_set: ChangeSet,
        change_count: int,
        latest_version: int,
        collection: str,
    ) -> int:
        base_version = outcome.base_version
        highest = change_set.highest_version

        # a list stopping short of the latest version is truncated, whether
        # our page size or a server-side cap cut it
        if highest is not None and highest < latest_version:
            outcome.truncated = True
            log.warning(
                "change_list_truncated",
                highest_observed=highest,
                latest_version=latest_version,
                change_count=change_count,
                page_size=self._page_size,
            )
            return max(base_version, highest)

        target = latest_version
        if highest is not None and latest_version < highest:
            error = FeedInconsistencyError(
                f"Feed reported latest version {latest_version} below observed change "
                f"version {highest}; cursor set to {highest}",
                collection,
            )
            log.warning("latest_version_below_observed", error=str(error))
            outcome.warnings.append(str(error))
            target = highest

        if target < base_version:
            error = FeedInconsistencyError(
                f"Feed reported latest version {target} below cursor {base_version}; "
                f"cursor kept at {base_version}",
                collection,
            )
            log.warning("cursor_regression_refused", error=str(error))
            outcome.warnings.append(str(error))
            target = base_version

        return target

    async def _remote(
        self, collection: str, operation: str, call: Callable[[], Awaitable[T]]
    ) -> T:
        try:
            if self._feed_timeout is None:
                return await call()
            return await asyncio.wait_for(call(), timeout=self._feed_timeout)
        except SyncError as e:
            e.collection = e.collection or collection
            raise
        except asyncio.TimeoutError as e:
            log.error("feed_call_timed_out", operation=operation, timeout=self._feed_timeout)
            raise TransientNetworkError(
                f"{operation} timed out after {self._feed_timeout}s", collection
            ) from e
        except Exception as e:
            log.error("feed_call_failed", operation=operation, error=str(e))
            raise FeedError(f"{operation} failed: {e}", collection) from e

    async def _local(
        self, collection: str, operation: str, call: Callable[[], Awaitable[T]]
    ) -> T:
        try:
            return await call()
        except SyncError as e:
            e.collection = e.collection or collection
            raise
        except Exception as e:
            log.error("local_store_call_failed", operation=operation, error=str(e))
            raise LocalStoreError(f"{operation} failed: {e}", collection) from e
