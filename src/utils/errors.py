"""Error types raised and recorded during synchronization."""


class SyncError(Exception):
    """Base class for all synchronization failures."""

    retryable: bool = False

    def __init__(self, message: str, collection: str | None = None):
        super().__init__(message)
        self.collection = collection

    @property
    def kind(self) -> str:
        """Short name of the error kind, used in reports."""
        return type(self).__name__


class TransientNetworkError(SyncError):
    """Timeout or connection failure talking to the change feed.

    Nothing persisted is touched before the failing fetch, so the caller
    can simply retry the pass.
    """

    retryable = True


class FeedError(SyncError):
    """Non-transient change feed failure (bad status, malformed payload)."""


class FeedInconsistencyError(SyncError):
    """The feed broke its contract in a way that can be recovered locally.

    Recorded as a warning on the report, never raised out of a pass.
    """


class LocalStoreError(SyncError):
    """Write or read failure against the local store or the version cursor."""


class TruncatedFeedError(SyncError):
    """The change list was cut off by a page limit before reaching the latest version."""

    retryable = True


class UnknownCollectionError(SyncError):
    """Sync was requested for a collection that has no registered binding."""
