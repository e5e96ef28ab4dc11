"""Synchronization components for applying change feeds incrementally."""

from src.sync.change_partitioner import ChangePartitioner
from src.sync.delta_synchronizer import CollectionBinding, DeltaSynchronizer
from src.sync.locks import CollectionLocks
from src.sync.models import ChangeSet, CollectionSyncReport, SessionReport
from src.sync.repository import OfflineFirstRepository
from src.sync.sync_coordinator import SyncCoordinator

__all__ = [
    "ChangePartitioner",
    "ChangeSet",
    "CollectionBinding",
    "CollectionLocks",
    "CollectionSyncReport",
    "DeltaSynchronizer",
    "OfflineFirstRepository",
    "SessionReport",
    "SyncCoordinator",
]
