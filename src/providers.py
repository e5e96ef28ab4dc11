"""Centralized provider module wiring feeds, stores and the synchronizer from config.

Developers can modify these functions to swap implementations without
changing other code.

Default implementations:
- ChangeFeed: HttpChangeFeed (requests, one endpoint family per collection)
- LocalStore: SqliteLocalStore (one table per collection in a single SQLite file)
- VersionCursor: JsonFileCursorStore (atomic JSON file)
"""

import sqlite3
import threading
from dataclasses import dataclass, field

import requests
import structlog

from src.feed.change_feed import ChangeFeed
from src.feed.http_feed import HttpChangeFeed
from src.models.collections import CollectionModels, get_collection_models
from src.models.config import AppConfig, FeedConfig, StorageConfig
from src.storage.cursor_store import JsonFileCursorStore, VersionCursor
from src.storage.local_store import LocalStore
from src.storage.sqlite_store import SqliteLocalStore, open_database
from src.sync.delta_synchronizer import DeltaSynchronizer
from src.sync.repository import OfflineFirstRepository
from src.sync.sync_coordinator import SyncCoordinator

log = structlog.stdlib.get_logger()


def get_cursor_store(config: StorageConfig) -> VersionCursor:
    """Get the configured version cursor implementation."""
    return JsonFileCursorStore(config.cursor_path)


def _collection_models(collection: str) -> CollectionModels:
    try:
        return get_collection_models(collection)
    except KeyError as e:
        log.error("unknown_collection", collection=collection, error=str(e))
        raise ValueError(str(e)) from e


def get_change_feed(
    config: FeedConfig, collection: str, session: requests.Session | None = None
) -> ChangeFeed:
    """Get the configured change feed for a collection.

    Developers: swap HttpChangeFeed here to read from another transport.

    Raises:
        ValueError: If the collection is not known
    """
    models = _collection_models(collection)
    return HttpChangeFeed(
        config=config,
        collection=collection,
        network_model=models.network_model,
        session=session,
    )


def get_local_store(
    conn: sqlite3.Connection, collection: str, lock: "threading.Lock | None" = None
) -> LocalStore:
    """Get the configured local store for a collection.

    Raises:
        ValueError: If the collection is not known
    """
    models = _collection_models(collection)
    return SqliteLocalStore(conn, table=collection, entity_model=models.entity_model, lock=lock)


@dataclass
class SyncComponents:
    """Everything built for one application instance."""

    synchronizer: DeltaSynchronizer
    coordinator: SyncCoordinator
    cursor: VersionCursor
    connection: sqlite3.Connection
    stores: dict[str, LocalStore] = field(default_factory=dict)
    repositories: dict[str, OfflineFirstRepository] = field(default_factory=dict)

    def close(self) -> None:
        self.connection.close()


def build_sync_components(
    config: AppConfig,
    collections: list[str] | None = None,
    session: requests.Session | None = None,
) -> SyncComponents:
    """Build the synchronizer, coordinator and stores described by a config.

    Args:
        config: Application configuration
        collections: Optional subset of collections (defaults to sync.collections)
        session: Optional requests session shared by every feed

    Returns:
        SyncComponents ready to run a session

    Raises:
        ValueError: If a collection is not known
    """
    names = collections if collections is not None else config.sync.collections
    log.info("building_sync_components", collections=names)

    cursor = get_cursor_store(config.storage)
    conn = open_database(config.storage.database_path)
    db_lock = threading.Lock()
    shared_session = session or requests.Session()

    synchronizer = DeltaSynchronizer.from_config(cursor, config.sync)
    components = SyncComponents(
        synchronizer=synchronizer,
        coordinator=SyncCoordinator(
            synchronizer,
            collections=names,
            stop_on_first_error=config.sync.stop_on_first_error,
        ),
        cursor=cursor,
        connection=conn,
    )

    try:
        for name in names:
            models = _collection_models(name)
            store = get_local_store(conn, name, lock=db_lock)
            synchronizer.register(
                name,
                feed=get_change_feed(config.feed, name, session=shared_session),
                store=store,
                mapper=models.as_entity,
            )
            components.stores[name] = store
            components.repositories[name] = OfflineFirstRepository(name, store, models.as_external)
    except Exception:
        conn.close()
        raise

    log.info("sync_components_built", collections=names)
    return components
