"""Aggregate PromQL queries for a whole cluster, one node, or one pod."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

# RFC 1123 subdomain (node and pod names) and label (namespaces)
_DNS_SUBDOMAIN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")
_DNS_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


class InvalidScopeError(ValueError):
    """A scope identifier is not a valid Kubernetes name."""


class Resource(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"


def _validate(kind: str, value: str, pattern: re.Pattern[str], max_len: int) -> str:
    if not value or len(value) > max_len or not pattern.match(value):
        raise InvalidScopeError(f"invalid {kind} name: {value!r}")
    return value


def quote(value: str) -> str:
    """Render `value` as a double-quoted PromQL string literal."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def _selector(*matchers: str) -> str:
    return "{" + ",".join(matchers) + "}" if matchers else ""


@dataclass(frozen=True)
class ClusterScope:
    def cpu_query(self) -> str:
        return '100 - (avg(irate(node_cpu_seconds_total{mode="idle"}[5m])) * 100)'

    def memory_query(self) -> str:
        return "100 * (1 - sum(node_memory_MemAvailable_bytes) / sum(node_memory_MemTotal_bytes))"


@dataclass(frozen=True)
class NodeScope:
    """Node exporter series whose instance label starts with the node name."""

    node: str

    def __post_init__(self) -> None:
        _validate("node", self.node, _DNS_SUBDOMAIN, 253)

    @property
    def instance_matcher(self) -> str:
        return "instance=~" + quote(re.escape(self.node) + ".*")

    def cpu_query(self) -> str:
        sel = _selector('mode="idle"', self.instance_matcher)
        return f"100 - (avg(irate(node_cpu_seconds_total{sel}[5m])) * 100)"

    def memory_query(self) -> str:
        sel = _selector(self.instance_matcher)
        return f"100 * (1 - node_memory_MemAvailable_bytes{sel} / node_memory_MemTotal_bytes{sel})"


@dataclass(frozen=True)
class PodScope:
    namespace: str
    pod: str

    def __post_init__(self) -> None:
        _validate("namespace", self.namespace, _DNS_LABEL, 63)
        _validate("pod", self.pod, _DNS_SUBDOMAIN, 253)

    def _matchers(self) -> tuple[str, str]:
        return "namespace=" + quote(self.namespace), "pod=" + quote(self.pod)

    def cpu_query(self) -> str:
        sel = _selector(*self._matchers())
        return f"sum(rate(container_cpu_usage_seconds_total{sel}[5m])) * 100"

    def memory_query(self) -> str:
        # Working set as a share of the pod's memory limits
        usage = _selector(*self._matchers(), 'container!=""')
        limits = _selector(*self._matchers(), 'resource="memory"')
        return (
            f"100 * sum(container_memory_working_set_bytes{usage})"
            f" / sum(kube_pod_container_resource_limits{limits})"
        )


Scope = ClusterScope | NodeScope | PodScope


def build_query(scope: Scope, resource: Resource) -> str:
    if resource is Resource.CPU:
        return scope.cpu_query()
    return scope.memory_query()
