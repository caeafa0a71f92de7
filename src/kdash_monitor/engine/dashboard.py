"""On-demand read APIs: cluster health, nodes, pods, alerts and history."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, Field

from kdash_monitor.clusters import (
    ClusterConfig,
    ClusterInventory,
    ClusterRegistry,
    NodeInfo,
    PodCounts,
    PodInfo,
)
from kdash_monitor.engine.health import HealthTier, classify
from kdash_monitor.errors import QueryError
from kdash_monitor.metrics import InvalidScopeError, MetricsProbe
from kdash_monitor.store import Alert, Snapshot, SnapshotStore

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_WINDOW = timedelta(hours=24)


class ClusterHealth(BaseModel):
    """Current state of one cluster as shown on the dashboard."""

    name: str
    display_name: str
    context: str
    status: HealthTier
    reachable: bool
    cpu_pct: float | None = None
    mem_pct: float | None = None
    node_count: int = 0
    pod_count: int = 0
    last_updated: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ClusterDetail(BaseModel):
    cluster: ClusterHealth
    pods: PodCounts


class Dashboard:
    """Read-side facade over the registry, inventory, probe and store."""

    def __init__(
        self,
        registry: ClusterRegistry,
        inventory: ClusterInventory,
        probe: MetricsProbe,
        store: SnapshotStore,
        reachability_timeout: float = 5.0,
    ) -> None:
        self.registry = registry
        self.inventory = inventory
        self.probe = probe
        self.store = store
        self.reachability_timeout = reachability_timeout

    def _usage(self, cfg: ClusterConfig) -> tuple[float | None, float | None]:
        if not self.probe.reachable(cfg.metrics_endpoint, timeout=self.reachability_timeout):
            return None, None
        cpu = mem = None
        try:
            cpu = self.probe.cluster_cpu_pct(cfg.metrics_endpoint)
        except QueryError as e:
            logger.debug("Cluster %s: CPU usage unavailable: %s", cfg.name, e)
        try:
            mem = self.probe.cluster_mem_pct(cfg.metrics_endpoint)
        except QueryError as e:
            logger.debug("Cluster %s: memory usage unavailable: %s", cfg.name, e)
        return cpu, mem

    def _detail(self, cfg: ClusterConfig) -> ClusterDetail:
        health = ClusterHealth(
            name=cfg.name,
            display_name=cfg.label,
            context=cfg.context,
            status=HealthTier.CRITICAL,
            reachable=False,
        )
        counts = PodCounts()
        # An unreachable cluster is reported Critical without further probing
        if not self.registry.reachable(cfg.name, timeout=self.reachability_timeout):
            return ClusterDetail(cluster=health, pods=counts)

        health.reachable = True
        try:
            health.node_count = self.inventory.node_count(cfg.name)
        except QueryError as e:
            logger.debug("Cluster %s: node count unavailable: %s", cfg.name, e)
        try:
            counts = self.inventory.pod_summary(cfg.name)
            health.pod_count = counts.total
        except QueryError as e:
            logger.debug("Cluster %s: pod summary unavailable: %s", cfg.name, e)
        health.cpu_pct, health.mem_pct = self._usage(cfg)
        health.status = classify(health.cpu_pct, health.mem_pct, counts.pending, counts.failed)
        return ClusterDetail(cluster=health, pods=counts)

    def clusters(self) -> list[ClusterHealth]:
        """Health of every enabled cluster, in configuration order."""
        return [self._detail(cfg).cluster for cfg in self.registry.enabled_configs()]

    def cluster(self, name: str) -> ClusterDetail:
        return self._detail(self.registry.config(name))

    def nodes(self, name: str) -> list[NodeInfo]:
        """Nodes of a cluster, with per-node usage when the metrics backend answers."""
        cfg = self.registry.config(name)
        nodes = self.inventory.list_nodes(name)
        if not cfg.metrics_endpoint or not self.probe.reachable(
            cfg.metrics_endpoint, timeout=self.reachability_timeout
        ):
            return nodes
        for node in nodes:
            try:
                node.cpu_pct = self.probe.node_cpu_pct(cfg.metrics_endpoint, node.name)
                node.mem_pct = self.probe.node_mem_pct(cfg.metrics_endpoint, node.name)
            except (QueryError, InvalidScopeError) as e:
                logger.debug("Node %s/%s: usage unavailable: %s", name, node.name, e)
        return nodes

    def pods(self, name: str, namespace: str = "") -> list[PodInfo]:
        self.registry.config(name)
        return self.inventory.list_pods(name, namespace=namespace)

    def alerts(self) -> list[Alert]:
        return self.store.active_alerts()

    def resolve(self, alert_id: int) -> bool:
        return self.store.resolve(alert_id)

    def history(self, name: str, since: timedelta = DEFAULT_HISTORY_WINDOW) -> list[Snapshot]:
        self.registry.config(name)
        return self.store.range(name, since)
