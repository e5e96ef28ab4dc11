"""Change feed interface: the remote, authoritative side of a sync."""

from abc import ABC, abstractmethod
from typing import Generic, Iterable, TypeVar

from pydantic import BaseModel

from src.models.change_list import ChangeListItem

NetworkT = TypeVar("NetworkT", bound=BaseModel)


class ChangeFeed(ABC, Generic[NetworkT]):
    """Abstract interface for one collection's versioned change feed.

    Contract relied on by the synchronizer:

    - get_change_list returns every id whose latest change has a version
      greater than ``since``, ascending by version, each id at most once
    - latest_version is never below the highest version of any change
      list returned at the same or an earlier instant
    - fetch_entities may silently omit ids (already deleted remotely)
    """

    @abstractmethod
    async def get_change_list(
        self, since: int, limit: int | None = None
    ) -> list[ChangeListItem]:
        """List changes with a version greater than ``since``.

        Args:
            since: Last version already applied locally
            limit: Optional maximum number of items to return. Feeds may
                return fewer; callers page on by version, not by count.

        Raises:
            TransientNetworkError: On timeouts or connection failures
            FeedError: On any other failure
        """
        pass

    @abstractmethod
    async def latest_version(self) -> int:
        """Return the current maximum change-list version of the collection.

        Raises:
            TransientNetworkError: On timeouts or connection failures
            FeedError: On any other failure
        """
        pass

    @abstractmethod
    async def fetch_entities(self, ids: Iterable[str]) -> list[NetworkT]:
        """Fetch the current state of the given entities in one batched read.

        Raises:
            TransientNetworkError: On timeouts or connection failures
            FeedError: On any other failure
        """
        pass
