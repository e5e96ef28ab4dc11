"""SQLite-backed local store, one table per synchronized collection."""

import asyncio
import re
import sqlite3
import threading
from pathlib import Path
from typing import Iterable

import structlog
from pydantic import ValidationError

from src.models.entities import SyncEntity
from src.storage.local_store import EntityT, LocalStore
from src.utils.errors import LocalStoreError

log = structlog.stdlib.get_logger()

_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def open_database(path: str | Path) -> sqlite3.Connection:
    """Open (creating if needed) the SQLite database shared by all collection tables."""
    if str(path) != ":memory:":
        Path(path).parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(str(path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    if str(path) != ":memory:":
        conn.execute("PRAGMA journal_mode=WAL")
    return conn


class SqliteLocalStore(LocalStore[EntityT]):
    """Local store persisting entities as JSON payloads in a SQLite table.

    Rows carry an ``ordinal`` column. Each upsert batch is assigned
    ordinals below every existing row, so ``ORDER BY ordinal`` yields the
    same snapshot order as the in-memory store: newest batch first, then
    previously stored rows.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        table: str,
        entity_model: type[EntityT],
        lock: "threading.Lock | None" = None,
    ):
        if not _TABLE_NAME.match(table):
            raise ValueError(f"Invalid table name: {table!r}")

        self._conn = conn
        self._table = table
        self._entity_model = entity_model
        # share one lock between stores using the same connection
        self._lock = lock or threading.Lock()
        self._create_table()

        log.info("sqlite_store_initialized", table=table, entity_model=entity_model.__name__)

    @property
    def table(self) -> str:
        return self._table

    def _create_table(self) -> None:
        with self._lock:
            self._conn.executescript(f"""
                CREATE TABLE IF NOT EXISTS {self._table} (
                    id       TEXT    PRIMARY KEY,
                    payload  TEXT    NOT NULL,
                    ordinal  INTEGER NOT NULL
                );
                CREATE INDEX IF NOT EXISTS idx_{self._table}_ordinal
                    ON {self._table}(ordinal);
            """)

    async def upsert_all(self, entities: Iterable[EntityT]) -> None:
        batch: dict[str, SyncEntity] = {}
        for entity in entities:
            batch[entity.id] = entity
        if not batch:
            return
        await asyncio.to_thread(self._upsert, list(batch.values()))

    async def delete_all(self, ids: Iterable[str]) -> None:
        id_list = list(dict.fromkeys(ids))
        if not id_list:
            return
        await asyncio.to_thread(self._delete, id_list)

    async def snapshot(self) -> list[EntityT]:
        return await asyncio.to_thread(self._snapshot)

    def _upsert(self, entities: list[SyncEntity]) -> None:
        try:
            with self._lock, self._conn:
                row = self._conn.execute(f"SELECT MIN(ordinal) FROM {self._table}").fetchone()
                lowest = row[0] if row[0] is not None else 0
                first = lowest - len(entities)
                self._conn.executemany(
                    f"""INSERT INTO {self._table} (id, payload, ordinal) VALUES (?, ?, ?)
                        ON CONFLICT(id) DO UPDATE SET
                            payload = excluded.payload,
                            ordinal = excluded.ordinal""",
                    [
                        (entity.id, entity.model_dump_json(), first + index)
                        for index, entity in enumerate(entities)
                    ],
                )
        except sqlite3.Error as e:
            log.error("sqlite_upsert_failed", table=self._table, count=len(entities), error=str(e))
            raise LocalStoreError(f"Failed to upsert into {self._table}: {e}") from e

        log.debug("sqlite_upserted", table=self._table, count=len(entities))

    def _delete(self, ids: list[str]) -> None:
        try:
            with self._lock, self._conn:
                cursor = self._conn.executemany(
                    f"DELETE FROM {self._table} WHERE id = ?", [(entity_id,) for entity_id in ids]
                )
        except sqlite3.Error as e:
            log.error("sqlite_delete_failed", table=self._table, count=len(ids), error=str(e))
            raise LocalStoreError(f"Failed to delete from {self._table}: {e}") from e

        log.debug("sqlite_deleted", table=self._table, requested=len(ids), deleted=cursor.rowcount)

    def _snapshot(self) -> list[EntityT]:
        try:
            with self._lock:
                rows = self._conn.execute(
                    f"SELECT payload FROM {self._table} ORDER BY ordinal"
                ).fetchall()
            return [self._entity_model.model_validate_json(row["payload"]) for row in rows]
        except (sqlite3.Error, ValidationError) as e:
            log.error("sqlite_snapshot_failed", table=self._table, error=str(e))
            raise LocalStoreError(f"Failed to read {self._table}: {e}") from e
