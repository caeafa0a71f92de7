"""Structured models for configured clusters and their nodes and pods."""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class ClusterConfig(BaseModel):
    """Connection settings for one monitored cluster."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1, description="Unique cluster key")
    display_name: str = Field(
        default="",
        validation_alias=AliasChoices("displayName", "display_name"),
    )
    context: str = Field(
        default="",
        description="Kubeconfig context (or 'in-cluster') used to build the client",
    )
    metrics_endpoint: str = Field(
        default="",
        validation_alias=AliasChoices("metricsEndpoint", "prometheusURL", "metrics_endpoint"),
        description="Base URL of the cluster's Prometheus",
    )
    enabled: bool = True

    @field_validator("metrics_endpoint")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def label(self) -> str:
        return self.display_name or self.name


class NodeReadiness(str, Enum):
    READY = "Ready"
    NOT_READY = "NotReady"
    UNKNOWN = "Unknown"


class PodPhase(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"
    UNKNOWN = "Unknown"

    @classmethod
    def parse(cls, value: str | None) -> PodPhase:
        try:
            return cls(value or "Unknown")
        except ValueError:
            return cls.UNKNOWN


class NodeInfo(BaseModel):
    """Summary of a cluster node."""

    name: str
    readiness: NodeReadiness
    roles: set[str] = Field(default_factory=lambda: {"worker"}, min_length=1)
    age: str = ""
    version: str = ""
    cpu_pct: float | None = None
    mem_pct: float | None = None


class PodInfo(BaseModel):
    """Summary of a pod."""

    name: str
    namespace: str
    phase: PodPhase
    restarts: int = Field(default=0, ge=0)
    age: str = ""
    node: str = ""
    cpu_pct: float | None = None
    mem_pct: float | None = None


class PodCounts(BaseModel):
    """Pod totals by phase for one cluster."""

    running: int = 0
    pending: int = 0
    failed: int = 0
    total: int = 0
