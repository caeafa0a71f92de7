"""Tests for node and pod listings."""

from datetime import timedelta

import pytest
from conftest import build_inventory, build_registry, make_core_api, make_node, make_pod
from kubernetes.client.rest import ApiException

from kdash_monitor.clusters import NodeReadiness, PodCounts, PodPhase
from kdash_monitor.clusters.inventory import node_roles
from kdash_monitor.errors import BackendError, ClusterNotFound


def _inventory(two_clusters, nodes=None, pods=None, api=None):
    api = api or make_core_api(nodes=nodes, pods=pods)
    return build_inventory(build_registry(two_clusters, {"ctx-alpha": api})), api


class TestNodeRoles:
    def test_no_role_labels_means_worker(self):
        assert node_roles({"kubernetes.io/hostname": "n1"}) == {"worker"}
        assert node_roles(None) == {"worker"}

    def test_control_plane_only(self):
        assert node_roles({"node-role.kubernetes.io/control-plane": ""}) == {"control-plane"}

    def test_multiple_roles_and_empty_suffix(self):
        labels = {
            "node-role.kubernetes.io/control-plane": "",
            "node-role.kubernetes.io/etcd": "true",
            "node-role.kubernetes.io/": "",
        }
        assert node_roles(labels) == {"control-plane", "etcd"}


class TestListNodes:
    def test_derived_fields(self, two_clusters):
        nodes = [
            make_node("cp-1", labels={"node-role.kubernetes.io/control-plane": ""}, age=timedelta(days=3)),
            make_node("w-1", ready="False", age=timedelta(hours=5)),
            make_node("w-2", ready="Unknown"),
            make_node("w-3", ready=None),
        ]
        inventory, api = _inventory(two_clusters, nodes=nodes)

        result = inventory.list_nodes("alpha")

        assert [n.name for n in result] == ["cp-1", "w-1", "w-2", "w-3"]
        assert [n.readiness for n in result] == [
            NodeReadiness.READY,
            NodeReadiness.NOT_READY,
            NodeReadiness.NOT_READY,
            NodeReadiness.UNKNOWN,
        ]
        assert result[0].roles == {"control-plane"}
        assert result[1].roles == {"worker"}
        assert result[0].age == "3d"
        assert result[1].age == "5h"
        assert result[0].version == "v1.30.2"
        assert result[0].cpu_pct is None
        api.list_node.assert_called_once_with(_request_timeout=2.0)

    def test_unknown_cluster(self, two_clusters):
        inventory, _ = _inventory(two_clusters)
        with pytest.raises(ClusterNotFound):
            inventory.list_nodes("beta")

    @pytest.mark.parametrize(
        "error",
        [
            ApiException(status=403, reason="Forbidden"),
            TimeoutError("timed out"),
            ValueError("Invalid value for `conditions`, must not be `None`"),
        ],
    )
    def test_listing_failure_is_backend_error(self, two_clusters, error):
        api = make_core_api()
        api.list_node.side_effect = error
        inventory, _ = _inventory(two_clusters, api=api)
        with pytest.raises(BackendError):
            inventory.list_nodes("alpha")

    def test_node_count(self, two_clusters):
        inventory, _ = _inventory(two_clusters, nodes=[make_node("a"), make_node("b")])
        assert inventory.node_count("alpha") == 2


class TestListPods:
    def test_restarts_summed_across_containers(self, two_clusters):
        inventory, _ = _inventory(two_clusters, pods=[make_pod("web", restarts=(2, 3, 0))])
        (pod,) = inventory.list_pods("alpha")
        assert pod.restarts == 5
        assert pod.phase is PodPhase.RUNNING
        assert pod.node == "node-1"
        assert pod.age == "15m"

    def test_namespace_filter(self, two_clusters):
        pods = [make_pod("a", namespace="kube-system"), make_pod("b", namespace="default")]
        inventory, api = _inventory(two_clusters, pods=pods)

        assert [p.name for p in inventory.list_pods("alpha", namespace="kube-system")] == ["a"]
        assert [p.name for p in inventory.list_pods("alpha")] == ["a", "b"]
        api.list_pod_for_all_namespaces.assert_called_once_with(_request_timeout=2.0)

    def test_undecodable_listing_is_backend_error(self, two_clusters):
        api = make_core_api()
        api.list_pod_for_all_namespaces.side_effect = ValueError("Invalid value for `phase`")
        inventory, _ = _inventory(two_clusters, api=api)
        with pytest.raises(BackendError, match="failed to list pods"):
            inventory.list_pods("alpha")

    def test_unrecognised_phase_is_unknown(self, two_clusters):
        inventory, _ = _inventory(two_clusters, pods=[make_pod("odd", phase="Evicting")])
        assert inventory.list_pods("alpha")[0].phase is PodPhase.UNKNOWN


class TestPodSummary:
    def test_counts_by_phase(self, two_clusters):
        phases = ["Running", "Running", "Pending", "Failed", "Running"]
        pods = [make_pod(f"p{i}", phase=phase) for i, phase in enumerate(phases)]
        inventory, _ = _inventory(two_clusters, pods=pods)

        assert inventory.pod_summary("alpha") == PodCounts(running=3, pending=1, failed=1, total=5)

    def test_succeeded_counts_only_in_total(self, two_clusters):
        inventory, _ = _inventory(two_clusters, pods=[make_pod("job", phase="Succeeded")])
        assert inventory.pod_summary("alpha") == PodCounts(total=1)
