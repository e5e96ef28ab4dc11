"""Data models for synchronization operations."""

from datetime import datetime

from pydantic import BaseModel, Field


class ChangeSet(BaseModel):
    """A change list split into the ids to fetch and upsert and the ids to delete."""

    updated_ids: list[str] = Field(
        default_factory=list, description="Ids to fetch and upsert, in feed order"
    )
    deleted_ids: list[str] = Field(
        default_factory=list, description="Ids to delete, in feed order"
    )
    conflicting_ids: list[str] = Field(
        default_factory=list,
        description="Ids reported both updated and deleted in one response (resolved as deletes)",
    )
    highest_version: int | None = Field(
        default=None, description="Highest change-list version observed, None for no changes"
    )

    @property
    def has_changes(self) -> bool:
        """Check if there are any changes to apply."""
        return bool(self.updated_ids or self.deleted_ids)

    @property
    def total_changes(self) -> int:
        """Get total number of changes."""
        return len(self.updated_ids) + len(self.deleted_ids)


class CollectionSyncReport(BaseModel):
    """Report of one collection's synchronization."""

    collection: str = Field(..., description="Collection that was synced")
    base_version: int = Field(default=0, ge=0, description="Cursor value before the sync")
    cursor_version: int = Field(default=0, ge=0, description="Cursor value after the sync")
    entities_upserted: int = Field(default=0, ge=0, description="Entities written locally")
    entities_deleted: int = Field(default=0, ge=0, description="Ids deleted locally")
    passes: int = Field(default=1, ge=1, description="Passes run, including follow-ups")
    complete: bool = Field(
        default=True, description="False if the cursor stopped short of the latest version"
    )
    warnings: list[str] = Field(
        default_factory=list, description="Recovered feed inconsistencies and truncation notices"
    )
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Sync duration in seconds")
    start_time: datetime = Field(..., description="Sync start timestamp")
    end_time: datetime = Field(..., description="Sync end timestamp")

    @property
    def total_changes(self) -> int:
        """Get total number of changes applied."""
        return self.entities_upserted + self.entities_deleted

    @property
    def has_warnings(self) -> bool:
        return len(self.warnings) > 0


class SessionReport(BaseModel):
    """Report of a sync session across all registered collections."""

    collections: list[str] = Field(default_factory=list, description="Collections in session order")
    reports: list[CollectionSyncReport] = Field(
        default_factory=list, description="Reports of collections that synced successfully"
    )
    failed_collection: str | None = Field(
        default=None, description="First collection whose sync failed"
    )
    error: str | None = Field(default=None, description="Error message of the first failure")
    error_kind: str | None = Field(default=None, description="Error class of the first failure")
    retryable: bool = Field(default=False, description="True if the first failure is retryable")
    errors: list[str] = Field(
        default_factory=list, description="Every failure, as 'collection: message'"
    )
    skipped_collections: list[str] = Field(
        default_factory=list, description="Collections not attempted after an abort"
    )
    duration_seconds: float = Field(default=0.0, ge=0.0, description="Session duration in seconds")
    start_time: datetime = Field(..., description="Session start timestamp")
    end_time: datetime = Field(..., description="Session end timestamp")

    @property
    def success(self) -> bool:
        """True only if every collection synced."""
        return self.failed_collection is None and not self.skipped_collections

    @property
    def total_changes(self) -> int:
        return sum(report.total_changes for report in self.reports)
