"""HTTP change feed client built on requests."""

import asyncio
from typing import Any, Generic, Iterable

import requests
import structlog
from pydantic import TypeAdapter, ValidationError
from requests.exceptions import ConnectionError, HTTPError, RequestException, Timeout

from src.feed.change_feed import ChangeFeed, NetworkT
from src.models.change_list import ChangeListItem
from src.models.config import FeedConfig
from src.utils.errors import FeedError, TransientNetworkError
from src.utils.retry import exponential_backoff_retry

log = structlog.stdlib.get_logger()

_CHANGE_LIST_ADAPTER = TypeAdapter(list[ChangeListItem])

# Status codes worth retrying; anything else is a hard failure
_TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class HttpChangeFeed(ChangeFeed[NetworkT], Generic[NetworkT]):
    """Change feed for one collection served over HTTP.

    Endpoints, relative to the configured base URL:

    - ``GET changelists/{collection}?after={since}[&limit={n}]``
    - ``GET changelists/{collection}/latest`` returning ``{"latestVersion": n}``
    - ``GET {collection}?id={a}&id={b}``

    Any response body may be wrapped in a ``{"data": ...}`` envelope.
    """

    def __init__(
        self,
        config: FeedConfig,
        collection: str,
        network_model: type[NetworkT],
        session: requests.Session | None = None,
    ):
        """
        Initialize the HTTP change feed.

        Args:
            config: Feed connection and retry settings
            collection: Collection name used in endpoint paths
            network_model: Pydantic model the entity endpoint returns
            session: Optional requests session (a new one is created if None)
        """
        self._base_url = str(config.base_url).rstrip("/")
        self._collection = collection
        self._timeout = config.request_timeout_seconds
        self._entities_adapter = TypeAdapter(list[network_model])

        self._session = session or requests.Session()
        self._session.headers["Accept"] = "application/json"
        if config.auth_token:
            self._session.headers["Authorization"] = f"Bearer {config.auth_token}"

        self._get_json = exponential_backoff_retry(
            max_retries=config.max_retries,
            base_delay=config.retry_base_delay,
            max_delay=config.retry_max_delay,
            exceptions=(TransientNetworkError,),
        )(self._get_json_once)

        log.info(
            "http_change_feed_initialized",
            base_url=self._base_url,
            collection=collection,
            max_retries=config.max_retries,
        )

    async def get_change_list(
        self, since: int, limit: int | None = None
    ) -> list[ChangeListItem]:
        params: dict[str, Any] = {"after": since}
        if limit is not None:
            params["limit"] = limit

        payload = await self._get_json(f"changelists/{self._collection}", params)
        try:
            changes = _CHANGE_LIST_ADAPTER.validate_python(self._unwrap(payload))
        except ValidationError as e:
            log.error("malformed_change_list", collection=self._collection, error=str(e))
            raise FeedError(f"Malformed change list: {e}", self._collection) from e

        log.info(
            "change_list_fetched",
            collection=self._collection,
            since=since,
            change_count=len(changes),
        )
        return changes

    async def latest_version(self) -> int:
        payload = self._unwrap(await self._get_json(f"changelists/{self._collection}/latest", {}))
        try:
            return int(payload["latestVersion"])
        except (KeyError, TypeError, ValueError) as e:
            log.error("malformed_latest_version", collection=self._collection, payload=payload)
            raise FeedError(f"Malformed latest version response: {e}", self._collection) from e

    async def fetch_entities(self, ids: Iterable[str]) -> list[NetworkT]:
        id_list = list(ids)
        if not id_list:
            return []

        payload = await self._get_json(self._collection, {"id": id_list})
        try:
            entities = self._entities_adapter.validate_python(self._unwrap(payload))
        except ValidationError as e:
            log.error("malformed_entities", collection=self._collection, error=str(e))
            raise FeedError(f"Malformed entity payload: {e}", self._collection) from e

        log.info(
            "entities_fetched",
            collection=self._collection,
            requested=len(id_list),
            received=len(entities),
        )
        return entities

    async def _get_json_once(self, path: str, params: dict[str, Any]) -> Any:
        return await asyncio.to_thread(self._request, path, params)

    def _request(self, path: str, params: dict[str, Any]) -> Any:
        url = f"{self._base_url}/{path}"
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
            response.raise_for_status()
            return response.json()
        except (Timeout, ConnectionError) as e:
            raise TransientNetworkError(f"GET {url} failed: {e}", self._collection) from e
        except HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status in _TRANSIENT_STATUS_CODES:
                raise TransientNetworkError(
                    f"GET {url} returned {status}", self._collection
                ) from e
            log.error("feed_request_rejected", url=url, status=status)
            raise FeedError(f"GET {url} returned {status}", self._collection) from e
        except ValueError as e:
            # requests raises a ValueError subclass for undecodable JSON bodies
            raise FeedError(f"GET {url} returned invalid JSON: {e}", self._collection) from e
        except RequestException as e:
            log.error("feed_request_failed", url=url, error=str(e))
            raise FeedError(f"GET {url} failed: {e}", self._collection) from e

    @staticmethod
    def _unwrap(payload: Any) -> Any:
        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload
