"""Local persistence: synchronized collections and the version cursor."""

from src.storage.cursor_store import InMemoryCursorStore, JsonFileCursorStore, VersionCursor
from src.storage.local_store import InMemoryLocalStore, LocalStore
from src.storage.sqlite_store import SqliteLocalStore, open_database

__all__ = [
    "InMemoryCursorStore",
    "InMemoryLocalStore",
    "JsonFileCursorStore",
    "LocalStore",
    "SqliteLocalStore",
    "VersionCursor",
    "open_database",
]
