"""Exception hierarchy shared by the monitor's layers."""

from __future__ import annotations


class KdashError(Exception):
    """Base class for all monitor errors."""


class ConfigError(KdashError):
    """Configuration is missing or malformed. Fatal at startup."""


class ClientInitError(KdashError):
    """A Kubernetes client could not be built for one cluster."""

    def __init__(self, cluster: str, message: str) -> None:
        super().__init__(f"cluster {cluster}: {message}")
        self.cluster = cluster
        self.message = message


class ClusterNotFound(KdashError, LookupError):
    """The cluster is not configured, disabled, or has no client."""

    def __init__(self, cluster: str) -> None:
        super().__init__(f"cluster {cluster} not found")
        self.cluster = cluster


class QueryError(KdashError):
    """A call to a backend (metrics or cluster API) produced no usable data."""


class TransportError(QueryError):
    """Network failure or timeout talking to a backend."""


class BackendError(QueryError):
    """The backend answered but reported a failure."""


class ParseError(QueryError):
    """The backend response could not be decoded."""


class StoreError(KdashError):
    """Persistence failure in the snapshot/alert store."""
