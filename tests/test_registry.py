"""Tests for the cluster registry."""

import logging
from unittest.mock import MagicMock

import pytest
from conftest import build_registry, make_core_api
from kubernetes.client.rest import ApiException

from kdash_monitor.clusters import ClusterConfig, ClusterRegistry
from kdash_monitor.errors import ClientInitError, ClusterNotFound, ConfigError


class TestConstruction:
    def test_partial_client_failure_is_isolated(self, two_clusters, caplog):
        api = make_core_api()
        with caplog.at_level(logging.WARNING):
            registry = build_registry(two_clusters, {"ctx-beta": api})

        assert registry.client("alpha") == (None, False)
        assert registry.client("beta") == (api, True)
        assert "alpha" in caplog.text

    def test_disabled_clusters_get_no_client(self):
        factory = MagicMock(return_value=make_core_api())
        configs = [
            ClusterConfig(name="on", context="c1"),
            ClusterConfig(name="off", context="c2", enabled=False),
        ]
        registry = ClusterRegistry(configs, factory)

        factory.assert_called_once_with("c1")
        assert registry.client("off") == (None, False)
        assert [c.name for c in registry.configs()] == ["on", "off"]
        assert [c.name for c in registry.enabled_configs()] == ["on"]

    def test_duplicate_names_rejected(self):
        configs = [ClusterConfig(name="a", context="x"), ClusterConfig(name="a", context="y")]
        with pytest.raises(ConfigError):
            ClusterRegistry(configs, MagicMock())

    def test_init_failure_names_the_cluster(self, caplog):
        factory = MagicMock(side_effect=ClientInitError("prod-admin", "context not found in kubeconfig"))
        with caplog.at_level(logging.WARNING):
            registry = ClusterRegistry([ClusterConfig(name="prod", context="prod-admin")], factory)

        assert registry.client("prod") == (None, False)
        assert "cluster prod: context not found in kubeconfig" in caplog.text
        assert "cluster prod-admin" not in caplog.text


class TestLookup:
    def test_get_unknown_raises(self, two_clusters):
        registry = build_registry(two_clusters, {})
        with pytest.raises(ClusterNotFound):
            registry.get("alpha")
        with pytest.raises(ClusterNotFound):
            registry.config("gamma")
        assert registry.config("alpha").display_name == "Alpha"


class TestReachable:
    def test_lists_one_node_with_timeout(self, two_clusters):
        api = make_core_api()
        registry = build_registry(two_clusters, {"ctx-alpha": api})

        assert registry.reachable("alpha", timeout=1.5) is True
        api.list_node.assert_called_once_with(limit=1, _request_timeout=1.5)

    @pytest.mark.parametrize("error", [ApiException(status=401, reason="Unauthorized"), TimeoutError("slow")])
    def test_any_error_is_false(self, two_clusters, error):
        api = make_core_api()
        api.list_node.side_effect = error
        registry = build_registry(two_clusters, {"ctx-alpha": api})

        assert registry.reachable("alpha") is False

    def test_missing_client_is_false(self, two_clusters):
        registry = build_registry(two_clusters, {})
        assert registry.reachable("alpha") is False
        assert registry.reachable("gamma") is False
