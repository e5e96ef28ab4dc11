"""Pydantic models for change-list entries and persisted cursor versions."""

from pydantic import BaseModel, ConfigDict, Field


class ChangeListItem(BaseModel):
    """One mutation to one entity as of a specific feed version."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {"id": "17", "changeListVersion": 22, "isDelete": True},
        },
    )

    id: str = Field(default=..., min_length=1, description="Identifier of the changed entity")
    change_list_version: int = Field(
        default=...,
        ge=0,
        alias="changeListVersion",
        description="Feed version at which this change was recorded",
    )
    is_delete: bool = Field(
        default=False, alias="isDelete", description="True if the entity was deleted"
    )


class ChangeListVersions(BaseModel):
    """Last applied change-list version for every synchronized collection."""

    versions: dict[str, int] = Field(
        default_factory=dict, description="Cursor value keyed by collection name"
    )

    model_config = {
        "json_schema_extra": {
            "example": {"versions": {"topics": 24, "news_resources": 0}},
        }
    }

    def version_of(self, collection: str) -> int:
        """Cursor value for a collection, 0 if it was never synchronized."""
        return self.versions.get(collection, 0)

    def with_version(self, collection: str, version: int) -> "ChangeListVersions":
        """Return a copy with one collection's cursor replaced."""
        return ChangeListVersions(versions={**self.versions, collection: version})
