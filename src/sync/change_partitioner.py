"""Splits a change list into upserts and deletes."""

import structlog

from src.models.change_list import ChangeListItem
from src.sync.models import ChangeSet

log = structlog.stdlib.get_logger()


class ChangePartitioner:
    """Partitions change-list items into ids to upsert and ids to delete."""

    def partition(self, changes: list[ChangeListItem]) -> ChangeSet:
        """
        Partition a change list.

        The feed promises each id at most once per response. If an id shows
        up both as an update and as a delete anyway, the delete wins and the
        id is reported in ``conflicting_ids``. Repeated entries of the same
        kind collapse to one.

        Args:
            changes: Change-list items as returned by the feed

        Returns:
            ChangeSet with disjoint updated and deleted ids, in feed order
        """
        deleted: dict[str, None] = {}
        updated: dict[str, None] = {}

        for item in changes:
            if item.is_delete:
                deleted[item.id] = None
            else:
                updated[item.id] = None

        conflicting = [entity_id for entity_id in updated if entity_id in deleted]
        if conflicting:
            log.warning(
                "change_list_conflict_resolved_as_delete",
                conflicting_ids=conflicting,
                count=len(conflicting),
            )

        change_set = ChangeSet(
            updated_ids=[entity_id for entity_id in updated if entity_id not in deleted],
            deleted_ids=list(deleted),
            conflicting_ids=conflicting,
            highest_version=max((item.change_list_version for item in changes), default=None),
        )

        log.info(
            "changes_partitioned",
            updated=len(change_set.updated_ids),
            deleted=len(change_set.deleted_ids),
            conflicts=len(conflicting),
            highest_version=change_set.highest_version,
        )
        return change_set
