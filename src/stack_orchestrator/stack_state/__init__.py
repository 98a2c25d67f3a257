"""Stack lock, state snapshot and state synchronization exports."""

from .lock_manager import ENGINE_MARKER_PREFIX, ConcurrentUpdateError, StackLock
from .state_snapshot import ResourceRecord, SnapshotError, deployment_of, snapshot_resources
from .state_synchronizer import DEFAULT_STATE_DIRNAME, StateSynchronizer

__all__ = [
    "ENGINE_MARKER_PREFIX",
    "ConcurrentUpdateError",
    "StackLock",
    "ResourceRecord",
    "SnapshotError",
    "deployment_of",
    "snapshot_resources",
    "DEFAULT_STATE_DIRNAME",
    "StateSynchronizer",
]
