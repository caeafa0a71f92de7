"""Registry of configured clusters and their Kubernetes API clients."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from types import MappingProxyType

from kubernetes import client, config

from kdash_monitor.clusters.models import ClusterConfig
from kdash_monitor.errors import ClientInitError, ClusterNotFound, ConfigError

logger = logging.getLogger(__name__)

IN_CLUSTER_CONTEXT = "in-cluster"
DEFAULT_REACHABILITY_TIMEOUT = 5.0

ClientFactory = Callable[[str], client.CoreV1Api]


class KubeconfigClientFactory:
    """Builds a CoreV1Api for a kubeconfig context (or the pod's service account)."""

    def __init__(self, kubeconfig: str | Path | None = None) -> None:
        self.kubeconfig = str(kubeconfig) if kubeconfig else None

    def __call__(self, context: str) -> client.CoreV1Api:
        try:
            if context == IN_CLUSTER_CONTEXT:
                cfg = client.Configuration()
                config.load_incluster_config(client_configuration=cfg)
                return client.CoreV1Api(client.ApiClient(cfg))
            api_client = config.new_client_from_config(
                config_file=self.kubeconfig,
                context=context or None,
            )
            return client.CoreV1Api(api_client)
        except (config.ConfigException, OSError, ValueError) as e:
            raise ClientInitError(context or "<default>", str(e)) from e


class ClusterRegistry:
    """
    Owns the configured clusters and one API client per enabled cluster.

    Clients are built once at construction; a cluster whose client cannot be
    built is logged and left out, the others are unaffected. The client map is
    read-only afterwards and safe to share between threads.
    """

    def __init__(self, configs: Iterable[ClusterConfig], client_factory: ClientFactory) -> None:
        self._configs: tuple[ClusterConfig, ...] = tuple(configs)
        by_name: dict[str, ClusterConfig] = {}
        for cfg in self._configs:
            if cfg.name in by_name:
                raise ConfigError(f"duplicate cluster name: {cfg.name}")
            by_name[cfg.name] = cfg
        self._by_name: Mapping[str, ClusterConfig] = MappingProxyType(by_name)

        clients: dict[str, client.CoreV1Api] = {}
        for cfg in self._configs:
            if not cfg.enabled:
                continue
            try:
                clients[cfg.name] = client_factory(cfg.context)
            except Exception as e:
                reason = e.message if isinstance(e, ClientInitError) else str(e)
                err = ClientInitError(cfg.name, reason)
                logger.warning("Failed to create client: %s", err)
        self._clients: Mapping[str, client.CoreV1Api] = MappingProxyType(clients)

    def configs(self) -> list[ClusterConfig]:
        """All configured clusters in file order, disabled ones included."""
        return list(self._configs)

    def enabled_configs(self) -> list[ClusterConfig]:
        return [c for c in self._configs if c.enabled]

    def config(self, name: str) -> ClusterConfig:
        try:
            return self._by_name[name]
        except KeyError:
            raise ClusterNotFound(name) from None

    def client(self, name: str) -> tuple[client.CoreV1Api | None, bool]:
        api = self._clients.get(name)
        return api, api is not None

    def get(self, name: str) -> client.CoreV1Api:
        api, found = self.client(name)
        if not found:
            raise ClusterNotFound(name)
        return api

    def reachable(self, name: str, timeout: float = DEFAULT_REACHABILITY_TIMEOUT) -> bool:
        """Return True if listing at most one node succeeds within `timeout`."""
        api, found = self.client(name)
        if not found:
            return False
        try:
            api.list_node(limit=1, _request_timeout=timeout)
        except Exception as e:
            logger.debug("Cluster %s unreachable: %s", name, e)
            return False
        return True
