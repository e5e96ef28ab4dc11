"""Synchronization coordinator for running a sync session over several collections."""

from datetime import datetime

import structlog

from src.sync.delta_synchronizer import DeltaSynchronizer
from src.sync.models import CollectionSyncReport, SessionReport
from src.utils.errors import SyncError

log = structlog.stdlib.get_logger()


class SyncCoordinator:
    """Runs the delta synchronizer for every collection of a session.

    Collections run one after another, in order, to keep load on the
    remote source predictable. Each collection's cursor is written by its
    own pass, so collections that finished before a failure stay
    synchronized; nothing is rolled back.
    """

    def __init__(
        self,
        synchronizer: DeltaSynchronizer,
        collections: list[str] | None = None,
        stop_on_first_error: bool = True,
    ):
        """
        Initialize sync coordinator.

        Args:
            synchronizer: Synchronizer holding the collection bindings
            collections: Collections to sync, in order (defaults to every
                collection registered on the synchronizer)
            stop_on_first_error: Abort the session at the first failing
                collection instead of carrying on with the rest
        """
        self._synchronizer = synchronizer
        self._collections = list(collections) if collections is not None else None
        self._stop_on_first_error = stop_on_first_error

        log.info(
            "sync_coordinator_initialized",
            collections=self.collections,
            stop_on_first_error=stop_on_first_error,
        )

    @property
    def collections(self) -> list[str]:
        if self._collections is not None:
            return list(self._collections)
        return self._synchronizer.collections

    async def sync_all(self) -> SessionReport:
        """
        Synchronize every collection of the session.

        Returns:
            SessionReport; ``success`` is True only if every collection
            synced, otherwise ``failed_collection`` names the first failure
        """
        collections = self.collections
        start_time = datetime.now()
        log.info("sync_session_started", collections=collections, start_time=start_time)

        reports: list[CollectionSyncReport] = []
        failures: list[tuple[str, SyncError]] = []
        skipped: list[str] = []

        for index, collection in enumerate(collections):
            try:
                reports.append(await self._synchronizer.sync(collection))
            except SyncError as e:
                failures.append((collection, e))
                log.error(
                    "collection_sync_failed",
                    collection=collection,
                    error=str(e),
                    error_kind=e.kind,
                    retryable=e.retryable,
                )
                if self._stop_on_first_error:
                    skipped = collections[index + 1 :]
                    if skipped:
                        log.warning("sync_session_aborted", skipped_collections=skipped)
                    break

        end_time = datetime.now()
        first_failure = failures[0] if failures else None

        session_report = SessionReport(
            collections=collections,
            reports=reports,
            failed_collection=first_failure[0] if first_failure else None,
            error=str(first_failure[1]) if first_failure else None,
            error_kind=first_failure[1].kind if first_failure else None,
            retryable=first_failure[1].retryable if first_failure else False,
            errors=[f"{collection}: {error}" for collection, error in failures],
            skipped_collections=skipped,
            duration_seconds=(end_time - start_time).total_seconds(),
            start_time=start_time,
            end_time=end_time,
        )

        log.info(
            "sync_session_completed",
            success=session_report.success,
            synced=[report.collection for report in reports],
            failed_collection=session_report.failed_collection,
            total_changes=session_report.total_changes,
            duration_seconds=session_report.duration_seconds,
        )
        return session_report
