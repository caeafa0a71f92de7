"""List nodes and pods of a cluster and derive readiness, roles, restarts and ages."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from kubernetes.client.rest import ApiException

from kdash_monitor.clusters.age import age_since
from kdash_monitor.clusters.models import NodeInfo, NodeReadiness, PodCounts, PodInfo, PodPhase
from kdash_monitor.clusters.registry import ClusterRegistry
from kdash_monitor.errors import BackendError

logger = logging.getLogger(__name__)

ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"
DEFAULT_ROLE = "worker"
DEFAULT_REQUEST_TIMEOUT = 10.0


def node_readiness(node: Any) -> NodeReadiness:
    """Ready/NotReady from the node's Ready condition, Unknown if it has none."""
    for c in getattr(node.status, "conditions", None) or []:
        if c.type == "Ready":
            return NodeReadiness.READY if c.status == "True" else NodeReadiness.NOT_READY
    return NodeReadiness.UNKNOWN


def node_roles(labels: dict[str, str] | None) -> set[str]:
    """Roles from node-role.kubernetes.io/<role> labels; a node without any is a worker."""
    roles = {
        key[len(ROLE_LABEL_PREFIX):]
        for key in (labels or {})
        if key.startswith(ROLE_LABEL_PREFIX) and key[len(ROLE_LABEL_PREFIX):]
    }
    return roles or {DEFAULT_ROLE}


def pod_restarts(pod: Any) -> int:
    return sum((cs.restart_count or 0) for cs in getattr(pod.status, "container_statuses", None) or [])


def _build_node_info(node: Any, now: datetime) -> NodeInfo:
    """Build NodeInfo from V1Node."""
    node_info = getattr(node.status, "node_info", None)
    return NodeInfo(
        name=node.metadata.name,
        readiness=node_readiness(node),
        roles=node_roles(node.metadata.labels),
        age=age_since(node.metadata.creation_timestamp, now),
        version=getattr(node_info, "kubelet_version", "") or "",
    )


def _build_pod_info(pod: Any, now: datetime) -> PodInfo:
    """Build PodInfo from V1Pod."""
    return PodInfo(
        name=pod.metadata.name,
        namespace=pod.metadata.namespace or "default",
        phase=PodPhase.parse(getattr(pod.status, "phase", None)),
        restarts=pod_restarts(pod),
        age=age_since(pod.metadata.creation_timestamp, now),
        node=getattr(pod.spec, "node_name", None) or "",
    )


class ClusterInventory:
    """Node and pod listings for clusters held by a registry."""

    def __init__(self, registry: ClusterRegistry, request_timeout: float = DEFAULT_REQUEST_TIMEOUT) -> None:
        self.registry = registry
        self.request_timeout = request_timeout

    def list_nodes(self, cluster: str, timeout: float | None = None) -> list[NodeInfo]:
        core = self.registry.get(cluster)
        try:
            node_list = core.list_node(_request_timeout=timeout or self.request_timeout)
            now = datetime.now(timezone.utc)
            return [_build_node_info(n, now) for n in node_list.items or []]
        except Exception as e:
            # The client raises ValueError on payloads it cannot deserialize
            raise BackendError(f"cluster {cluster}: failed to list nodes: {_reason(e)}") from e

    def node_count(self, cluster: str, timeout: float | None = None) -> int:
        return len(self.list_nodes(cluster, timeout=timeout))

    def list_pods(self, cluster: str, namespace: str = "", timeout: float | None = None) -> list[PodInfo]:
        """Pods in `namespace`, or in all namespaces when it is empty."""
        core = self.registry.get(cluster)
        request_timeout = timeout or self.request_timeout
        try:
            if namespace:
                pod_list = core.list_namespaced_pod(namespace=namespace, _request_timeout=request_timeout)
            else:
                pod_list = core.list_pod_for_all_namespaces(_request_timeout=request_timeout)
            now = datetime.now(timezone.utc)
            pods = [_build_pod_info(p, now) for p in pod_list.items or []]
        except Exception as e:
            raise BackendError(f"cluster {cluster}: failed to list pods: {_reason(e)}") from e
        logger.debug("Listed %d pods in cluster %s (namespace=%s)", len(pods), cluster, namespace or "*")
        return pods

    def pod_summary(self, cluster: str, timeout: float | None = None) -> PodCounts:
        counts = PodCounts()
        for pod in self.list_pods(cluster, timeout=timeout):
            if pod.phase is PodPhase.RUNNING:
                counts.running += 1
            elif pod.phase is PodPhase.PENDING:
                counts.pending += 1
            elif pod.phase is PodPhase.FAILED:
                counts.failed += 1
            counts.total += 1
        return counts


def _reason(e: Exception) -> str:
    if isinstance(e, ApiException):
        return f"{e.status} {e.reason}"
    return str(e)
