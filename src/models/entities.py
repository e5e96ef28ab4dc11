"""Pydantic models for synchronized collections and their mapping functions.

Every collection exists in three forms:

- Network model: what the change feed returns (camelCase wire fields)
- Stored entity: what the local store persists (derives from SyncEntity)
- External model: what readers of the local store are handed
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SyncEntity(BaseModel):
    """Base class for anything kept in a local store."""

    id: str = Field(default=..., min_length=1, description="Stable entity identifier")


class _NetworkModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default=..., min_length=1, description="Stable entity identifier")


# Topics


class NetworkTopic(_NetworkModel):
    """Topic as returned by the remote source."""

    name: str = Field(default="", description="Display name")
    short_description: str = Field(default="", alias="shortDescription")
    long_description: str = Field(default="", alias="longDescription")
    url: str = Field(default="", description="Link to the topic page")
    image_url: str = Field(default="", alias="imageUrl")

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "1",
                "name": "Headlines",
                "shortDescription": "News you'll definitely be interested in",
                "longDescription": "The latest events and announcements",
                "url": "",
                "imageUrl": "https://example.com/img/headlines.svg",
            }
        },
    )


class TopicEntity(SyncEntity):
    """Topic as persisted locally."""

    name: str = ""
    short_description: str = ""
    long_description: str = ""
    url: str = ""
    image_url: str = ""


class Topic(BaseModel):
    """Topic as exposed to readers."""

    id: str
    name: str
    short_description: str
    long_description: str
    url: str
    image_url: str


def topic_as_entity(network: NetworkTopic) -> TopicEntity:
    return TopicEntity(
        id=network.id,
        name=network.name,
        short_description=network.short_description,
        long_description=network.long_description,
        url=network.url,
        image_url=network.image_url,
    )


def topic_as_external(entity: TopicEntity) -> Topic:
    return Topic(
        id=entity.id,
        name=entity.name,
        short_description=entity.short_description,
        long_description=entity.long_description,
        url=entity.url,
        image_url=entity.image_url,
    )


def network_topic_as_external(network: NetworkTopic) -> Topic:
    return Topic(
        id=network.id,
        name=network.name,
        short_description=network.short_description,
        long_description=network.long_description,
        url=network.url,
        image_url=network.image_url,
    )


# Authors


class NetworkAuthor(_NetworkModel):
    """Author as returned by the remote source."""

    name: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    twitter: str = ""
    medium_page: str = Field(default="", alias="mediumPage")
    bio: str = ""


class AuthorEntity(SyncEntity):
    """Author as persisted locally."""

    name: str = ""
    image_url: str = ""
    twitter: str = ""
    medium_page: str = ""
    bio: str = ""


class Author(BaseModel):
    """Author as exposed to readers."""

    id: str
    name: str
    image_url: str
    twitter: str
    medium_page: str
    bio: str


def author_as_entity(network: NetworkAuthor) -> AuthorEntity:
    return AuthorEntity(
        id=network.id,
        name=network.name,
        image_url=network.image_url,
        twitter=network.twitter,
        medium_page=network.medium_page,
        bio=network.bio,
    )


def author_as_external(entity: AuthorEntity) -> Author:
    return Author(
        id=entity.id,
        name=entity.name,
        image_url=entity.image_url,
        twitter=entity.twitter,
        medium_page=entity.medium_page,
        bio=entity.bio,
    )


def network_author_as_external(network: NetworkAuthor) -> Author:
    return Author(
        id=network.id,
        name=network.name,
        image_url=network.image_url,
        twitter=network.twitter,
        medium_page=network.medium_page,
        bio=network.bio,
    )


# News resources


class NetworkNewsResource(_NetworkModel):
    """News resource as returned by the remote source."""

    title: str = ""
    content: str = ""
    url: str = ""
    header_image_url: str | None = Field(default=None, alias="headerImageUrl")
    publish_date: datetime = Field(default=..., alias="publishDate")
    type: str = Field(default="Unknown", description="Resource type (Article, Video, ...)")
    topics: list[str] = Field(default_factory=list, description="Ids of related topics")
    authors: list[str] = Field(default_factory=list, description="Ids of related authors")


class NewsResourceEntity(SyncEntity):
    """News resource as persisted locally.

    Topic and author references are stored as plain id lists rather than
    cross-reference tables; the local store has no join semantics.
    """

    title: str = ""
    content: str = ""
    url: str = ""
    header_image_url: str | None = None
    publish_date: datetime
    type: str = "Unknown"
    topic_ids: list[str] = Field(default_factory=list)
    author_ids: list[str] = Field(default_factory=list)


class NewsResource(BaseModel):
    """News resource as exposed to readers."""

    id: str
    title: str
    content: str
    url: str
    header_image_url: str | None
    publish_date: datetime
    type: str
    topic_ids: list[str]
    author_ids: list[str]


def news_resource_as_entity(network: NetworkNewsResource) -> NewsResourceEntity:
    return NewsResourceEntity(
        id=network.id,
        title=network.title,
        content=network.content,
        url=network.url,
        header_image_url=network.header_image_url,
        publish_date=network.publish_date,
        type=network.type,
        topic_ids=list(network.topics),
        author_ids=list(network.authors),
    )


def news_resource_as_external(entity: NewsResourceEntity) -> NewsResource:
    return NewsResource(
        id=entity.id,
        title=entity.title,
        content=entity.content,
        url=entity.url,
        header_image_url=entity.header_image_url,
        publish_date=entity.publish_date,
        type=entity.type,
        topic_ids=list(entity.topic_ids),
        author_ids=list(entity.author_ids),
    )


def network_news_resource_as_external(network: NetworkNewsResource) -> NewsResource:
    return NewsResource(
        id=network.id,
        title=network.title,
        content=network.content,
        url=network.url,
        header_image_url=network.header_image_url,
        publish_date=network.publish_date,
        type=network.type,
        topic_ids=list(network.topics),
        author_ids=list(network.authors),
    )
