"""Shared fixtures: Kubernetes objects, fake API clients and a fake Prometheus."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from kubernetes import client

from kdash_monitor.clusters import ClusterConfig, ClusterInventory, ClusterRegistry
from kdash_monitor.metrics import MetricsProbe
from kdash_monitor.store import SnapshotStore

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_node(
    name: str,
    ready: str | None = "True",
    labels: dict[str, str] | None = None,
    age: timedelta = timedelta(days=3),
    version: str = "v1.30.2",
) -> client.V1Node:
    conditions = [client.V1NodeCondition(type="Ready", status=ready)] if ready is not None else []
    node_info = client.V1NodeSystemInfo(
        architecture="amd64",
        boot_id="boot-1",
        container_runtime_version="containerd://1.7.13",
        kernel_version="6.1.0",
        kube_proxy_version=version,
        kubelet_version=version,
        machine_id="machine-1",
        operating_system="linux",
        os_image="Ubuntu 22.04.4 LTS",
        system_uuid="uuid-1",
    )
    status = client.V1NodeStatus(conditions=conditions, node_info=node_info)
    return client.V1Node(
        metadata=client.V1ObjectMeta(
            name=name,
            labels=labels or {},
            creation_timestamp=datetime.now(timezone.utc) - age,
        ),
        status=status,
    )


def make_pod(
    name: str,
    phase: str = "Running",
    namespace: str = "default",
    restarts: tuple[int, ...] = (0,),
    node: str = "node-1",
    age: timedelta = timedelta(minutes=15),
) -> client.V1Pod:
    statuses = [
        client.V1ContainerStatus(
            name=f"c{i}",
            image="busybox",
            image_id="",
            ready=phase == "Running",
            restart_count=count,
        )
        for i, count in enumerate(restarts)
    ]
    return client.V1Pod(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            creation_timestamp=datetime.now(timezone.utc) - age,
        ),
        spec=client.V1PodSpec(containers=[], node_name=node),
        status=client.V1PodStatus(phase=phase, container_statuses=statuses),
    )


def make_core_api(nodes: list[Any] | None = None, pods: list[Any] | None = None) -> MagicMock:
    """A CoreV1Api double returning fixed node and pod lists."""
    api = MagicMock(spec=client.CoreV1Api)
    api.list_node.return_value = client.V1NodeList(items=nodes or [])
    api.list_pod_for_all_namespaces.return_value = client.V1PodList(items=pods or [])

    def _namespaced(namespace: str, **_kwargs: Any) -> client.V1PodList:
        return client.V1PodList(items=[p for p in pods or [] if p.metadata.namespace == namespace])

    api.list_namespaced_pod.side_effect = _namespaced
    return api


def prom_payload(value: str | None) -> dict[str, Any]:
    """Prometheus instant-vector response with one sample, or none."""
    result = [] if value is None else [{"metric": {}, "value": [1767225600.0, value]}]
    return {"status": "success", "data": {"resultType": "vector", "result": result}}


def make_response(payload: Any = None, status_code: int = 200, json_error: bool = False) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    if json_error:
        resp.json.side_effect = ValueError("not json")
    else:
        resp.json.return_value = payload
    return resp


class FakePrometheus:
    """Session double answering queries per endpoint: `values[endpoint]` maps a metric-name fragment to a value."""

    def __init__(self, values: dict[str, dict[str, str]] | None = None, down: set[str] | None = None) -> None:
        self.values = values or {}
        self.down = down or set()
        self.calls: list[tuple[str, str]] = []

    def get(self, url: str, params: dict[str, str], timeout: float) -> MagicMock:
        import requests

        endpoint = url.rsplit("/api/v1/query", 1)[0]
        query = params["query"]
        self.calls.append((endpoint, query))
        if endpoint in self.down:
            raise requests.ConnectionError(f"connection refused: {endpoint}")
        if query == "up":
            return make_response(prom_payload("1"))
        for fragment, value in self.values.get(endpoint, {}).items():
            if fragment in query:
                return make_response(prom_payload(value))
        return make_response(prom_payload(None))

    def close(self) -> None:
        pass


@pytest.fixture
def clock() -> SimpleNamespace:
    """Mutable clock; set `clock.now` to move time."""
    return SimpleNamespace(now=NOW)


@pytest.fixture
def store(tmp_path, clock):
    s = SnapshotStore(tmp_path / "metrics.db", clock=lambda: clock.now)
    yield s
    s.close()


def build_registry(configs: list[ClusterConfig], apis: dict[str, Any]) -> ClusterRegistry:
    """Registry whose factory maps a context name to a prepared API double (missing context -> init failure)."""

    def factory(context: str) -> Any:
        if context not in apis:
            raise RuntimeError(f"context {context} not found in kubeconfig")
        return apis[context]

    return ClusterRegistry(configs, factory)


@pytest.fixture
def two_clusters() -> list[ClusterConfig]:
    return [
        ClusterConfig(name="alpha", display_name="Alpha", context="ctx-alpha", metrics_endpoint="http://prom-alpha:9090"),
        ClusterConfig(name="beta", display_name="Beta", context="ctx-beta", metrics_endpoint="http://prom-beta:9090"),
    ]


def build_inventory(registry: ClusterRegistry) -> ClusterInventory:
    return ClusterInventory(registry, request_timeout=2.0)


def build_probe(prom: FakePrometheus) -> MetricsProbe:
    return MetricsProbe(session=prom, timeout=2.0)
