"""Persisted records: usage snapshots and alerts."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    WARNING = "Warning"
    CRITICAL = "Critical"


class Snapshot(BaseModel):
    """Point-in-time usage of one cluster. `cpu_pct`/`mem_pct` are None when no data was available."""

    model_config = ConfigDict(frozen=True)

    cluster: str
    cpu_pct: float | None = None
    mem_pct: float | None = None
    pod_count: int = Field(default=0, ge=0)
    node_count: int = Field(default=0, ge=0)
    timestamp: datetime | None = None
    id: int | None = None


class Alert(BaseModel):
    """Threshold breach for a cluster. Only `resolved` changes after creation."""

    cluster: str
    severity: Severity
    message: str
    timestamp: datetime | None = None
    resolved: bool = False
    id: int | None = None
