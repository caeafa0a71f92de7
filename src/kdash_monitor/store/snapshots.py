"""SQLite-backed history of cluster snapshots and the alert log."""

from __future__ import annotations

import logging
import sqlite3
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path

from kdash_monitor.errors import StoreError
from kdash_monitor.store.models import Alert, Severity, Snapshot

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MICROSECOND = timedelta(microseconds=1)

SCHEMA = """
CREATE TABLE IF NOT EXISTS snapshots (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cluster TEXT NOT NULL,
    cpu_pct REAL,
    mem_pct REAL,
    pod_count INTEGER NOT NULL DEFAULT 0,
    node_count INTEGER NOT NULL DEFAULT 0,
    ts INTEGER NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_snapshots_cluster_ts ON snapshots (cluster, ts);
CREATE INDEX IF NOT EXISTS idx_snapshots_ts ON snapshots (ts);
CREATE TABLE IF NOT EXISTS alerts (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cluster TEXT NOT NULL,
    severity TEXT NOT NULL,
    message TEXT NOT NULL,
    ts INTEGER NOT NULL,
    resolved INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_alerts_resolved_ts ON alerts (resolved, ts);
"""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_micros(ts: datetime) -> int:
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return (ts - _EPOCH) // _MICROSECOND


def _from_micros(value: int) -> datetime:
    return _EPOCH + timedelta(microseconds=value)


def _row_to_snapshot(row: sqlite3.Row) -> Snapshot:
    return Snapshot(
        id=row["id"],
        cluster=row["cluster"],
        cpu_pct=row["cpu_pct"],
        mem_pct=row["mem_pct"],
        pod_count=row["pod_count"],
        node_count=row["node_count"],
        timestamp=_from_micros(row["ts"]),
    )


def _row_to_alert(row: sqlite3.Row) -> Alert:
    return Alert(
        id=row["id"],
        cluster=row["cluster"],
        severity=Severity(row["severity"]),
        message=row["message"],
        timestamp=_from_micros(row["ts"]),
        resolved=bool(row["resolved"]),
    )


class SnapshotStore:
    """
    Append-only snapshot history plus an alert log with a resolved flag.

    One connection is shared by all threads; a lock serializes access and
    every write is committed before the call returns. Timestamps are assigned
    by the store from `clock` (UTC).
    """

    def __init__(self, path: str | Path, clock: Callable[[], datetime] = _utcnow) -> None:
        self.path = str(path)
        self._clock = clock
        self._lock = threading.Lock()
        try:
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self.path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.executescript(SCHEMA)
        except (sqlite3.Error, OSError) as e:
            raise StoreError(f"cannot open store at {self.path}: {e}") from e

    @contextmanager
    def _transaction(self, what: str) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                with self._conn:
                    yield self._conn
            except sqlite3.Error as e:
                raise StoreError(f"failed to {what}: {e}") from e

    # Snapshots

    def append(self, snapshot: Snapshot) -> Snapshot:
        """Persist a snapshot stamped with the current time; returns the stored record."""
        now = self._clock()
        with self._transaction("save snapshot") as conn:
            cur = conn.execute(
                "INSERT INTO snapshots (cluster, cpu_pct, mem_pct, pod_count, node_count, ts)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                (
                    snapshot.cluster,
                    snapshot.cpu_pct,
                    snapshot.mem_pct,
                    snapshot.pod_count,
                    snapshot.node_count,
                    _to_micros(now),
                ),
            )
        return snapshot.model_copy(update={"id": cur.lastrowid, "timestamp": now})

    def range(self, cluster: str, since: timedelta) -> list[Snapshot]:
        """Snapshots of `cluster` newer than now - `since`, oldest first."""
        cutoff = _to_micros(self._clock() - since)
        with self._transaction("read snapshots") as conn:
            rows = conn.execute(
                "SELECT * FROM snapshots WHERE cluster = ? AND ts > ? ORDER BY ts ASC, id ASC",
                (cluster, cutoff),
            ).fetchall()
        return [_row_to_snapshot(r) for r in rows]

    def latest(self, cluster: str, limit: int = 1) -> list[Snapshot]:
        """The most recent `limit` snapshots of `cluster`, newest first."""
        with self._transaction("read snapshots") as conn:
            rows = conn.execute(
                "SELECT * FROM snapshots WHERE cluster = ? ORDER BY ts DESC, id DESC LIMIT ?",
                (cluster, limit),
            ).fetchall()
        return [_row_to_snapshot(r) for r in rows]

    def prune(self, older_than: timedelta) -> int:
        """Delete snapshots strictly older than now - `older_than`. Returns rows removed."""
        cutoff = _to_micros(self._clock() - older_than)
        with self._transaction("prune snapshots") as conn:
            cur = conn.execute("DELETE FROM snapshots WHERE ts < ?", (cutoff,))
        if cur.rowcount:
            logger.info("Pruned %d snapshots older than %s", cur.rowcount, older_than)
        return cur.rowcount

    # Alerts

    def raise_alert(self, alert: Alert) -> Alert:
        """Persist a new unresolved alert stamped with the current time."""
        now = self._clock()
        with self._transaction("save alert") as conn:
            cur = conn.execute(
                "INSERT INTO alerts (cluster, severity, message, ts, resolved) VALUES (?, ?, ?, ?, 0)",
                (alert.cluster, alert.severity.value, alert.message, _to_micros(now)),
            )
        return alert.model_copy(update={"id": cur.lastrowid, "timestamp": now, "resolved": False})

    def active_alerts(self) -> list[Alert]:
        """Unresolved alerts, newest first."""
        with self._transaction("read alerts") as conn:
            rows = conn.execute(
                "SELECT * FROM alerts WHERE resolved = 0 ORDER BY ts DESC, id DESC"
            ).fetchall()
        return [_row_to_alert(r) for r in rows]

    def alerts_for_cluster(self, cluster: str) -> list[Alert]:
        with self._transaction("read alerts") as conn:
            rows = conn.execute(
                "SELECT * FROM alerts WHERE cluster = ? ORDER BY ts DESC, id DESC", (cluster,)
            ).fetchall()
        return [_row_to_alert(r) for r in rows]

    def recent_alerts(self, since: timedelta) -> list[Alert]:
        cutoff = _to_micros(self._clock() - since)
        with self._transaction("read alerts") as conn:
            rows = conn.execute(
                "SELECT * FROM alerts WHERE ts > ? ORDER BY ts DESC, id DESC", (cutoff,)
            ).fetchall()
        return [_row_to_alert(r) for r in rows]

    def resolve(self, alert_id: int) -> bool:
        """Mark an alert resolved. Unknown or already-resolved ids are a no-op; returns whether a row changed."""
        with self._transaction("resolve alert") as conn:
            cur = conn.execute(
                "UPDATE alerts SET resolved = 1 WHERE id = ? AND resolved = 0", (alert_id,)
            )
        return cur.rowcount > 0

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SnapshotStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
