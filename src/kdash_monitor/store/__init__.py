"""Store layer: snapshot history and alert log."""

from kdash_monitor.store.models import Alert, Severity, Snapshot
from kdash_monitor.store.snapshots import SnapshotStore

__all__ = [
    "Alert",
    "Severity",
    "Snapshot",
    "SnapshotStore",
]
