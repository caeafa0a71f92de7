"""Cluster layer: configured clusters, their API clients, nodes and pods."""

from kdash_monitor.clusters.inventory import ClusterInventory
from kdash_monitor.clusters.models import (
    ClusterConfig,
    NodeInfo,
    NodeReadiness,
    PodCounts,
    PodInfo,
    PodPhase,
)
from kdash_monitor.clusters.registry import ClusterRegistry, KubeconfigClientFactory

__all__ = [
    "ClusterConfig",
    "ClusterInventory",
    "ClusterRegistry",
    "KubeconfigClientFactory",
    "NodeInfo",
    "NodeReadiness",
    "PodCounts",
    "PodInfo",
    "PodPhase",
]
