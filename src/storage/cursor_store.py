"""Persisted version cursor: the last applied change-list version per collection."""

import asyncio
import json
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path

import structlog
from pydantic import ValidationError

from src.models.change_list import ChangeListVersions
from src.utils.errors import LocalStoreError

log = structlog.stdlib.get_logger()


class VersionCursor(ABC):
    """Abstract per-collection version cursor.

    ``set`` is a plain overwrite of one collection's slot. Callers never
    derive the new value from the old one, so no read-modify-write
    transaction is offered.
    """

    @abstractmethod
    async def get(self, collection: str) -> int:
        """Return the cursor for a collection, 0 if it was never set.

        Raises:
            LocalStoreError: If the persisted cursor cannot be read
        """
        pass

    @abstractmethod
    async def set(self, collection: str, version: int) -> None:
        """Overwrite the cursor for a collection.

        Raises:
            LocalStoreError: If the cursor cannot be persisted
        """
        pass

    @abstractmethod
    async def get_all(self) -> ChangeListVersions:
        """Return the cursor of every collection."""
        pass


class InMemoryCursorStore(VersionCursor):
    """Process-local cursor, lost on restart."""

    def __init__(self, initial: ChangeListVersions | None = None):
        self._versions = initial or ChangeListVersions()

    async def get(self, collection: str) -> int:
        return self._versions.version_of(collection)

    async def set(self, collection: str, version: int) -> None:
        self._versions = self._versions.with_version(collection, version)

    async def get_all(self) -> ChangeListVersions:
        return self._versions


class JsonFileCursorStore(VersionCursor):
    """Cursor persisted as a JSON document on disk.

    Every write replaces the whole file atomically (temporary file in the
    same directory, then os.replace), so a crash mid-write leaves either
    the old or the new record, never a torn one.
    """

    def __init__(self, path: str | Path):
        self._path = Path(path)
        self._lock = threading.Lock()
        log.info("json_cursor_store_initialized", path=str(self._path))

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, collection: str) -> int:
        versions = await asyncio.to_thread(self._read)
        return versions.version_of(collection)

    async def set(self, collection: str, version: int) -> None:
        await asyncio.to_thread(self._update, collection, version)

    async def get_all(self) -> ChangeListVersions:
        return await asyncio.to_thread(self._read)

    def _read(self) -> ChangeListVersions:
        if not self._path.exists():
            return ChangeListVersions()

        try:
            return ChangeListVersions.model_validate_json(self._path.read_text(encoding="utf-8"))
        except (OSError, ValidationError, json.JSONDecodeError) as e:
            log.error("failed_to_read_cursor", path=str(self._path), error=str(e))
            raise LocalStoreError(f"Failed to read version cursor {self._path}: {e}") from e

    def _update(self, collection: str, version: int) -> None:
        with self._lock:
            updated = self._read().with_version(collection, version)
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(
                    dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
                )
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as f:
                        f.write(updated.model_dump_json(indent=2))
                        f.flush()
                        os.fsync(f.fileno())
                    os.replace(tmp_name, self._path)
                except BaseException:
                    Path(tmp_name).unlink(missing_ok=True)
                    raise
            except OSError as e:
                log.error(
                    "failed_to_write_cursor",
                    path=str(self._path),
                    collection=collection,
                    error=str(e),
                )
                raise LocalStoreError(
                    f"Failed to persist version cursor for {collection}: {e}", collection
                ) from e

        log.debug("cursor_persisted", collection=collection, version=version)
