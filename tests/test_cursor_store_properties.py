"""Property-based tests for version cursor persistence.

**Feature: offline-delta-sync, Property 12: Cursor survives restarts**
"""

import json

import pytest
import structlog
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from src.models.change_list import ChangeListVersions
from src.storage.cursor_store import InMemoryCursorStore, JsonFileCursorStore
from src.utils.errors import LocalStoreError
from sync_helpers import run

log = structlog.stdlib.get_logger()

collection_names = st.sampled_from(["topics", "authors", "news_resources"])


class TestInMemoryCursorStore:
    def test_unknown_collection_reads_zero(self) -> None:
        assert run(InMemoryCursorStore().get("topics")) == 0

    def test_initial_versions_are_used(self) -> None:
        cursor = InMemoryCursorStore(ChangeListVersions(versions={"topics": 12}))

        assert run(cursor.get("topics")) == 12
        assert run(cursor.get("authors")) == 0

    @given(writes=st.lists(st.tuples(collection_names, st.integers(min_value=0, max_value=10**6))))
    @settings(max_examples=50)
    def test_last_write_per_collection_wins(self, writes) -> None:
        cursor = InMemoryCursorStore()
        expected: dict[str, int] = {}

        for collection, version in writes:
            run(cursor.set(collection, version))
            expected[collection] = version

        assert run(cursor.get_all()).versions == expected


class TestJsonFileCursorStore:
    def test_missing_file_reads_zero(self, tmp_path) -> None:
        cursor = JsonFileCursorStore(tmp_path / "cursor.json")

        assert run(cursor.get("topics")) == 0
        assert not cursor.path.exists()

    def test_value_survives_new_instance(self, tmp_path) -> None:
        path = tmp_path / "state" / "cursor.json"
        run(JsonFileCursorStore(path).set("topics", 24))

        reopened = JsonFileCursorStore(path)

        assert run(reopened.get("topics")) == 24
        assert json.loads(path.read_text())["versions"] == {"topics": 24}

    def test_collections_are_written_independently(self, tmp_path) -> None:
        cursor = JsonFileCursorStore(tmp_path / "cursor.json")

        run(cursor.set("topics", 19))
        run(cursor.set("authors", 3))
        run(cursor.set("topics", 24))

        assert run(cursor.get_all()).versions == {"topics": 24, "authors": 3}

    def test_no_temporary_files_left_behind(self, tmp_path) -> None:
        cursor = JsonFileCursorStore(tmp_path / "cursor.json")

        for version in range(5):
            run(cursor.set("topics", version))

        assert [p.name for p in tmp_path.iterdir()] == ["cursor.json"]

    def test_corrupt_file_raises_local_store_error(self, tmp_path) -> None:
        path = tmp_path / "cursor.json"
        path.write_text("{not json")
        cursor = JsonFileCursorStore(path)

        with pytest.raises(LocalStoreError):
            run(cursor.get("topics"))

    def test_unwritable_location_raises_local_store_error(self, tmp_path) -> None:
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")
        cursor = JsonFileCursorStore(blocker / "cursor.json")

        with pytest.raises(LocalStoreError) as exc_info:
            run(cursor.set("topics", 1))

        assert exc_info.value.collection == "topics"

    @given(versions=st.dictionaries(collection_names, st.integers(min_value=0, max_value=10**9)))
    @settings(max_examples=25, suppress_health_check=[HealthCheck.function_scoped_fixture])
    def test_persisted_versions_round_trip(self, tmp_path, versions) -> None:
        path = tmp_path / "roundtrip.json"
        path.unlink(missing_ok=True)
        cursor = JsonFileCursorStore(path)

        for collection, version in versions.items():
            run(cursor.set(collection, version))

        assert run(JsonFileCursorStore(path).get_all()).versions == versions
