"""Data models for the offline-first sync service."""

from src.models.change_list import ChangeListItem, ChangeListVersions
from src.models.collections import (
    AUTHORS,
    COLLECTIONS,
    NEWS_RESOURCES,
    TOPICS,
    CollectionModels,
    get_collection_models,
)
from src.models.config import (
    AppConfig,
    FeedConfig,
    LoggingConfig,
    StorageConfig,
    SyncConfig,
)
from src.models.entities import (
    Author,
    AuthorEntity,
    NetworkAuthor,
    NetworkNewsResource,
    NetworkTopic,
    NewsResource,
    NewsResourceEntity,
    SyncEntity,
    Topic,
    TopicEntity,
)

__all__ = [
    "ChangeListItem",
    "ChangeListVersions",
    "AUTHORS",
    "COLLECTIONS",
    "NEWS_RESOURCES",
    "TOPICS",
    "CollectionModels",
    "get_collection_models",
    "AppConfig",
    "FeedConfig",
    "LoggingConfig",
    "StorageConfig",
    "SyncConfig",
    "Author",
    "AuthorEntity",
    "NetworkAuthor",
    "NetworkNewsResource",
    "NetworkTopic",
    "NewsResource",
    "NewsResourceEntity",
    "SyncEntity",
    "Topic",
    "TopicEntity",
]
