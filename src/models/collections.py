"""Registry of the collections this system knows how to synchronize."""

from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel

from src.models.entities import (
    AuthorEntity,
    NetworkAuthor,
    NetworkNewsResource,
    NetworkTopic,
    NewsResourceEntity,
    SyncEntity,
    TopicEntity,
    author_as_entity,
    author_as_external,
    news_resource_as_entity,
    news_resource_as_external,
    topic_as_entity,
    topic_as_external,
)

TOPICS = "topics"
AUTHORS = "authors"
NEWS_RESOURCES = "news_resources"


@dataclass(frozen=True)
class CollectionModels:
    """Model types and mapping functions for one collection."""

    name: str
    network_model: type[BaseModel]
    entity_model: type[SyncEntity]
    as_entity: Callable[[Any], SyncEntity]
    as_external: Callable[[Any], BaseModel]


COLLECTIONS: dict[str, CollectionModels] = {
    TOPICS: CollectionModels(
        name=TOPICS,
        network_model=NetworkTopic,
        entity_model=TopicEntity,
        as_entity=topic_as_entity,
        as_external=topic_as_external,
    ),
    AUTHORS: CollectionModels(
        name=AUTHORS,
        network_model=NetworkAuthor,
        entity_model=AuthorEntity,
        as_entity=author_as_entity,
        as_external=author_as_external,
    ),
    NEWS_RESOURCES: CollectionModels(
        name=NEWS_RESOURCES,
        network_model=NetworkNewsResource,
        entity_model=NewsResourceEntity,
        as_entity=news_resource_as_entity,
        as_external=news_resource_as_external,
    ),
}


def get_collection_models(name: str) -> CollectionModels:
    """Look up a known collection.

    Raises:
        KeyError: If the collection is not known
    """
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise KeyError(f"Unknown collection '{name}'. Known collections: {sorted(COLLECTIONS)}")
