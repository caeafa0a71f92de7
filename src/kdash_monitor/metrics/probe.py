"""Query a cluster's Prometheus for CPU and memory usage."""

from __future__ import annotations

import logging

import requests
from pydantic import ValidationError

from kdash_monitor.errors import BackendError, ParseError, QueryError, TransportError
from kdash_monitor.metrics.models import QueryResult
from kdash_monitor.metrics.queries import ClusterScope, NodeScope, PodScope, Resource, Scope, build_query

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 10.0
DEFAULT_REACHABILITY_TIMEOUT = 5.0
LIVENESS_QUERY = "up"


def extract_first_value(result: QueryResult) -> float:
    """
    Return the value of the first sample. An empty result means no data and
    yields 0.0; a sample whose [epoch, "value"] pair is malformed is a ParseError.
    """
    if not result.data.result:
        return 0.0
    value = result.data.result[0].value
    if len(value) < 2:
        raise ParseError(f"unexpected result format: {value!r}")
    raw = value[1]
    if not isinstance(raw, str):
        raise ParseError(f"unexpected value type: {type(raw).__name__}")
    try:
        return float(raw)
    except ValueError as e:
        raise ParseError(f"failed to parse value {raw!r}") from e


class MetricsProbe:
    """Runs instant queries against Prometheus endpoints over a shared HTTP session."""

    def __init__(
        self,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_QUERY_TIMEOUT,
    ) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def query(self, endpoint: str, expr: str, timeout: float | None = None) -> QueryResult:
        """Run an instant query. Raises TransportError, BackendError or ParseError."""
        if not endpoint:
            raise TransportError("no metrics endpoint configured")
        url = f"{endpoint.rstrip('/')}/api/v1/query"
        try:
            resp = self.session.get(url, params={"query": expr}, timeout=timeout or self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"failed to query {url}: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            if not resp.ok:
                raise BackendError(f"query failed with HTTP {resp.status_code}") from e
            raise ParseError(f"failed to parse response from {url}") from e
        try:
            result = QueryResult.model_validate(payload)
        except ValidationError as e:
            if not resp.ok:
                raise BackendError(f"query failed with HTTP {resp.status_code}") from e
            raise ParseError(f"unexpected response shape from {url}: {e}") from e

        if result.status != "success":
            detail = f": {result.error_type}: {result.error}" if result.error else ""
            raise BackendError(f"query failed with status {result.status}{detail}")
        return result

    def scalar(self, endpoint: str, expr: str, timeout: float | None = None) -> float:
        return extract_first_value(self.query(endpoint, expr, timeout=timeout))

    def usage(self, endpoint: str, scope: Scope, resource: Resource, timeout: float | None = None) -> float:
        return self.scalar(endpoint, build_query(scope, resource), timeout=timeout)

    def cluster_cpu_pct(self, endpoint: str, timeout: float | None = None) -> float:
        return self.usage(endpoint, ClusterScope(), Resource.CPU, timeout)

    def cluster_mem_pct(self, endpoint: str, timeout: float | None = None) -> float:
        return self.usage(endpoint, ClusterScope(), Resource.MEMORY, timeout)

    def node_cpu_pct(self, endpoint: str, node: str, timeout: float | None = None) -> float:
        return self.usage(endpoint, NodeScope(node), Resource.CPU, timeout)

    def node_mem_pct(self, endpoint: str, node: str, timeout: float | None = None) -> float:
        return self.usage(endpoint, NodeScope(node), Resource.MEMORY, timeout)

    def pod_cpu_pct(self, endpoint: str, namespace: str, pod: str, timeout: float | None = None) -> float:
        return self.usage(endpoint, PodScope(namespace, pod), Resource.CPU, timeout)

    def pod_mem_pct(self, endpoint: str, namespace: str, pod: str, timeout: float | None = None) -> float:
        return self.usage(endpoint, PodScope(namespace, pod), Resource.MEMORY, timeout)

    def reachable(self, endpoint: str, timeout: float = DEFAULT_REACHABILITY_TIMEOUT) -> bool:
        """Return True if the trivial `up` query succeeds within `timeout`."""
        try:
            self.query(endpoint, LIVENESS_QUERY, timeout=timeout)
        except QueryError as e:
            logger.debug("Metrics endpoint %s unreachable: %s", endpoint or "<unset>", e)
            return False
        return True

    def close(self) -> None:
        self.session.close()
