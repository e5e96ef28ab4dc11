"""Property-based tests for mapping between network, stored and external models.

**Feature: offline-delta-sync, Property 20: Mapping through storage is lossless**
"""

from datetime import datetime, timezone

import pytest
import structlog
from hypothesis import given, settings
from hypothesis import strategies as st

from src.models.collections import (
    AUTHORS,
    COLLECTIONS,
    NEWS_RESOURCES,
    TOPICS,
    get_collection_models,
)
from src.models.entities import (
    Author,
    NetworkAuthor,
    NetworkNewsResource,
    NetworkTopic,
    NewsResourceEntity,
    author_as_entity,
    author_as_external,
    network_author_as_external,
    network_news_resource_as_external,
    network_topic_as_external,
    news_resource_as_entity,
    news_resource_as_external,
    topic_as_entity,
    topic_as_external,
)
from src.storage.sqlite_store import SqliteLocalStore, open_database
from sync_helpers import run

log = structlog.stdlib.get_logger()

ids = st.text(
    min_size=1, max_size=12, alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd"))
)


@st.composite
def network_topic_strategy(draw: st.DrawFn) -> NetworkTopic:
    return NetworkTopic(
        id=draw(ids),
        name=draw(st.text(max_size=40)),
        short_description=draw(st.text(max_size=80)),
        long_description=draw(st.text(max_size=200)),
        url=draw(st.text(max_size=60)),
        image_url=draw(st.text(max_size=60)),
    )


@st.composite
def network_author_strategy(draw: st.DrawFn) -> NetworkAuthor:
    return NetworkAuthor(
        id=draw(ids),
        name=draw(st.text(max_size=40)),
        image_url=draw(st.text(max_size=60)),
        twitter=draw(st.text(max_size=20)),
        medium_page=draw(st.text(max_size=60)),
        bio=draw(st.text(max_size=200)),
    )


@st.composite
def network_news_resource_strategy(draw: st.DrawFn) -> NetworkNewsResource:
    # Generate naive timestamps first (hypothesis requirement)
    publish_date = draw(
        st.datetimes(min_value=datetime(2015, 1, 1), max_value=datetime(2030, 1, 1))
    ).replace(tzinfo=timezone.utc)
    return NetworkNewsResource(
        id=draw(ids),
        title=draw(st.text(max_size=80)),
        content=draw(st.text(max_size=300)),
        url=draw(st.text(max_size=60)),
        header_image_url=draw(st.none() | st.text(max_size=60)),
        publish_date=publish_date,
        type=draw(st.sampled_from(["Article", "Video", "Codelab", "Unknown"])),
        topics=draw(st.lists(ids, max_size=5)),
        authors=draw(st.lists(ids, max_size=5)),
    )


@given(topic=network_topic_strategy())
@settings(max_examples=100)
def test_topic_mapping_commutes(topic: NetworkTopic) -> None:
    assert topic_as_external(topic_as_entity(topic)) == network_topic_as_external(topic)


@given(author=network_author_strategy())
@settings(max_examples=100)
def test_author_mapping_commutes(author: NetworkAuthor) -> None:
    assert author_as_external(author_as_entity(author)) == network_author_as_external(author)


def test_author_maps_field_by_field() -> None:
    author = NetworkAuthor.model_validate(
        {
            "id": "a1",
            "name": "Ada",
            "imageUrl": "https://example.com/img/a1.png",
            "twitter": "@ada",
            "mediumPage": "https://medium.com/@ada",
            "bio": "Writes about compilers",
        }
    )

    entity = author_as_entity(author)
    expected = Author(
        id="a1",
        name="Ada",
        image_url="https://example.com/img/a1.png",
        twitter="@ada",
        medium_page="https://medium.com/@ada",
        bio="Writes about compilers",
    )

    assert entity.medium_page == "https://medium.com/@ada"
    assert network_author_as_external(author) == expected
    assert author_as_external(entity) == expected


@given(resource=network_news_resource_strategy())
@settings(max_examples=100)
def test_news_resource_mapping_commutes(resource: NetworkNewsResource) -> None:
    external = news_resource_as_external(news_resource_as_entity(resource))

    assert external == network_news_resource_as_external(resource)
    assert external.topic_ids == resource.topics
    assert external.author_ids == resource.authors


@given(resources=st.lists(network_news_resource_strategy(), max_size=5, unique_by=lambda r: r.id))
@settings(max_examples=30, deadline=None)
def test_news_resources_survive_sqlite_storage(resources) -> None:
    store = SqliteLocalStore(open_database(":memory:"), NEWS_RESOURCES, NewsResourceEntity)
    entities = [news_resource_as_entity(resource) for resource in resources]

    run(store.upsert_all(entities))

    assert [news_resource_as_external(e) for e in run(store.snapshot())] == [
        network_news_resource_as_external(resource) for resource in resources
    ]


def test_network_models_accept_wire_field_names() -> None:
    topic = NetworkTopic.model_validate(
        {
            "id": "1",
            "name": "Headlines",
            "shortDescription": "News you'll definitely be interested in",
            "longDescription": "The latest events and announcements",
            "url": "",
            "imageUrl": "https://example.com/img/headlines.svg",
        }
    )
    resource = NetworkNewsResource.model_validate(
        {
            "id": "n1",
            "title": "Launch",
            "publishDate": "2024-05-01T10:00:00Z",
            "headerImageUrl": "https://example.com/img/n1.png",
            "topics": ["1"],
            "authors": ["a1"],
        }
    )

    assert topic.short_description == "News you'll definitely be interested in"
    assert topic.image_url.endswith("headlines.svg")
    assert resource.publish_date == datetime(2024, 5, 1, 10, tzinfo=timezone.utc)
    assert resource.type == "Unknown"


@pytest.mark.parametrize("name", [TOPICS, AUTHORS, NEWS_RESOURCES])
def test_registry_lookup(name: str) -> None:
    models = get_collection_models(name)

    assert models.name == name
    assert COLLECTIONS[name] is models


def test_registry_rejects_unknown_collection() -> None:
    with pytest.raises(KeyError) as exc_info:
        get_collection_models("bookmarks")

    assert "bookmarks" in str(exc_info.value)
