"""Wire settings into the registry, inventory, probe, store, collector and dashboard."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta

from kdash_monitor.clusters import ClusterInventory, ClusterRegistry, KubeconfigClientFactory
from kdash_monitor.clusters.registry import ClientFactory
from kdash_monitor.config import Settings, get_settings, load_cluster_configs
from kdash_monitor.engine import Collector, Dashboard
from kdash_monitor.metrics import MetricsProbe
from kdash_monitor.store import SnapshotStore

logger = logging.getLogger(__name__)


@dataclass
class Monitor:
    """All long-lived components of a running monitor."""

    settings: Settings
    registry: ClusterRegistry
    inventory: ClusterInventory
    probe: MetricsProbe
    store: SnapshotStore
    collector: Collector
    dashboard: Dashboard

    def close(self) -> None:
        self.collector.stop()
        self.probe.close()
        self.store.close()


def build_monitor(settings: Settings | None = None, client_factory: ClientFactory | None = None) -> Monitor:
    """
    Load the cluster file and build every component. Raises ConfigError for a
    bad cluster file and StoreError if the database cannot be opened.
    """
    opts = settings or get_settings()
    configs = load_cluster_configs(opts.cluster_config)
    logger.info("Loaded %d cluster(s) from %s", len(configs), opts.cluster_config)

    registry = ClusterRegistry(configs, client_factory or KubeconfigClientFactory(opts.kubeconfig))
    inventory = ClusterInventory(registry, request_timeout=opts.request_timeout)
    probe = MetricsProbe(timeout=opts.request_timeout)
    store = SnapshotStore(opts.db_path)
    collector = Collector(
        registry,
        inventory,
        probe,
        store,
        collection_interval=opts.collection_interval,
        retention_interval=opts.retention_interval,
        retention_window=timedelta(seconds=opts.retention_window),
        request_timeout=opts.request_timeout,
        reachability_timeout=opts.reachability_timeout,
    )
    dashboard = Dashboard(registry, inventory, probe, store, reachability_timeout=opts.reachability_timeout)
    return Monitor(
        settings=opts,
        registry=registry,
        inventory=inventory,
        probe=probe,
        store=store,
        collector=collector,
        dashboard=dashboard,
    )
