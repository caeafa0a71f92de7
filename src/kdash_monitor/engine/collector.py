"""Collector: periodically snapshot every enabled cluster, raise alerts and prune history."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import timedelta

from kdash_monitor.clusters import ClusterConfig, ClusterInventory, ClusterRegistry
from kdash_monitor.engine.health import CRITICAL_USAGE_PCT, WARNING_USAGE_PCT
from kdash_monitor.errors import ClusterNotFound, QueryError, StoreError
from kdash_monitor.metrics import MetricsProbe
from kdash_monitor.store import Alert, Severity, Snapshot, SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION_INTERVAL = 60.0
DEFAULT_RETENTION_INTERVAL = 3600.0
DEFAULT_RETENTION_WINDOW = timedelta(hours=24)


def threshold_alerts(cluster: str, cpu_pct: float | None, mem_pct: float | None, failed_pods: int) -> list[Alert]:
    """
    Alerts for one cycle's readings. CPU and memory each give at most one alert
    (Critical above 95%, Warning above 80%); any failed pod gives a Warning.
    """
    alerts: list[Alert] = []
    for label, value in (("CPU", cpu_pct), ("Memory", mem_pct)):
        if value is None:
            continue
        if value > CRITICAL_USAGE_PCT:
            alerts.append(
                Alert(
                    cluster=cluster,
                    severity=Severity.CRITICAL,
                    message=f"{label} usage is critically high at {value:.1f}%",
                )
            )
        elif value > WARNING_USAGE_PCT:
            alerts.append(
                Alert(
                    cluster=cluster,
                    severity=Severity.WARNING,
                    message=f"{label} usage is elevated at {value:.1f}%",
                )
            )
    if failed_pods > 0:
        alerts.append(
            Alert(
                cluster=cluster,
                severity=Severity.WARNING,
                message=f"{failed_pods} pod(s) in failed state",
            )
        )
    return alerts


@dataclass
class CycleReport:
    """Outcome of one collection cycle."""

    snapshots: dict[str, Snapshot | None] = field(default_factory=dict)
    alerts: list[Alert] = field(default_factory=list)
    errors: dict[str, list[str]] = field(default_factory=dict)

    def note(self, cluster: str, message: str) -> None:
        self.errors.setdefault(cluster, []).append(message)


class Collector:
    """
    Two independent schedules drive one loop: a collection cycle that samples
    every enabled cluster and a retention cycle that prunes old snapshots.
    Failures are isolated per cluster and per data category.
    """

    def __init__(
        self,
        registry: ClusterRegistry,
        inventory: ClusterInventory,
        probe: MetricsProbe,
        store: SnapshotStore,
        collection_interval: float = DEFAULT_COLLECTION_INTERVAL,
        retention_interval: float = DEFAULT_RETENTION_INTERVAL,
        retention_window: timedelta = DEFAULT_RETENTION_WINDOW,
        request_timeout: float | None = None,
        reachability_timeout: float = 5.0,
    ) -> None:
        self.registry = registry
        self.inventory = inventory
        self.probe = probe
        self.store = store
        self.collection_interval = collection_interval
        self.retention_interval = retention_interval
        self.retention_window = retention_window
        self.request_timeout = request_timeout
        self.reachability_timeout = reachability_timeout
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # Single cycles

    def collect_cluster(self, cfg: ClusterConfig, report: CycleReport) -> Snapshot | None:
        """
        Sample one cluster, store its snapshot and raise any threshold alerts.
        Returns None without storing anything if a stop is requested part-way.
        """
        node_count = 0
        pod_count = 0
        failed_pods = 0
        cpu_pct: float | None = None
        mem_pct: float | None = None

        try:
            node_count = self.inventory.node_count(cfg.name, timeout=self.request_timeout)
        except (ClusterNotFound, QueryError) as e:
            logger.warning("Cluster %s: node count unavailable: %s", cfg.name, e)
            report.note(cfg.name, f"nodes: {e}")
        if self._stopping(cfg):
            return None

        try:
            pods = self.inventory.pod_summary(cfg.name, timeout=self.request_timeout)
            pod_count, failed_pods = pods.total, pods.failed
        except (ClusterNotFound, QueryError) as e:
            logger.warning("Cluster %s: pod summary unavailable: %s", cfg.name, e)
            report.note(cfg.name, f"pods: {e}")
        if self._stopping(cfg):
            return None

        if self.probe.reachable(cfg.metrics_endpoint, timeout=self.reachability_timeout):
            try:
                cpu_pct = self.probe.cluster_cpu_pct(cfg.metrics_endpoint, timeout=self.request_timeout)
            except QueryError as e:
                logger.warning("Cluster %s: CPU usage unavailable: %s", cfg.name, e)
                report.note(cfg.name, f"cpu: {e}")
            if self._stopping(cfg):
                return None
            try:
                mem_pct = self.probe.cluster_mem_pct(cfg.metrics_endpoint, timeout=self.request_timeout)
            except QueryError as e:
                logger.warning("Cluster %s: memory usage unavailable: %s", cfg.name, e)
                report.note(cfg.name, f"memory: {e}")
        else:
            logger.debug("Cluster %s: metrics endpoint unreachable, skipping usage", cfg.name)

        stored: Snapshot | None = None
        try:
            stored = self.store.append(
                Snapshot(
                    cluster=cfg.name,
                    cpu_pct=cpu_pct,
                    mem_pct=mem_pct,
                    pod_count=pod_count,
                    node_count=node_count,
                )
            )
        except StoreError as e:
            logger.error("Failed to save snapshot for %s: %s", cfg.name, e)
            report.note(cfg.name, f"snapshot: {e}")

        for alert in threshold_alerts(cfg.name, cpu_pct, mem_pct, failed_pods):
            try:
                report.alerts.append(self.store.raise_alert(alert))
                logger.info("Alert [%s] %s: %s", alert.severity.value, cfg.name, alert.message)
            except StoreError as e:
                logger.error("Failed to save alert for %s: %s", cfg.name, e)
                report.note(cfg.name, f"alert: {e}")
        return stored

    def _stopping(self, cfg: ClusterConfig) -> bool:
        if self._stop.is_set():
            logger.info("Stop requested, abandoning collection for %s", cfg.name)
            return True
        return False

    def collect_once(self) -> CycleReport:
        """Run one collection cycle over every enabled cluster."""
        report = CycleReport()
        for cfg in self.registry.enabled_configs():
            if self._stop.is_set():
                break
            try:
                report.snapshots[cfg.name] = self.collect_cluster(cfg, report)
            except Exception:
                logger.exception("Collection failed for cluster %s", cfg.name)
                report.snapshots[cfg.name] = None
                report.note(cfg.name, "unexpected error")
        logger.debug("Collected %d cluster(s), raised %d alert(s)", len(report.snapshots), len(report.alerts))
        return report

    def prune_once(self) -> int:
        try:
            return self.store.prune(self.retention_window)
        except StoreError as e:
            logger.error("Failed to cleanup old snapshots: %s", e)
            return 0

    # Scheduling

    def run(self, stop_event: threading.Event | None = None, collect_immediately: bool = True) -> None:
        """
        Block until `stop_event` (or stop()) is set, collecting every
        `collection_interval` and pruning every `retention_interval` seconds.
        """
        if stop_event is not None:
            self._stop = stop_event
        stop = self._stop
        now = time.monotonic()
        next_collect = now if collect_immediately else now + self.collection_interval
        next_prune = now + self.retention_interval
        logger.info(
            "Collector started: %d enabled cluster(s), every %.0fs",
            len(self.registry.enabled_configs()),
            self.collection_interval,
        )
        while not stop.is_set():
            now = time.monotonic()
            if now >= next_collect:
                self.collect_once()
                next_collect = max(next_collect + self.collection_interval, time.monotonic())
            if now >= next_prune:
                self.prune_once()
                next_prune = max(next_prune + self.retention_interval, time.monotonic())
            stop.wait(max(0.0, min(next_collect, next_prune) - time.monotonic()))
        logger.info("Collector stopped")

    def start(self) -> threading.Thread:
        """Run the loop on a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self.run, name="kdash-collector", daemon=True)
        self._thread.start()
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
