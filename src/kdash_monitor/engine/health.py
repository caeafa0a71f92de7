"""Cluster health classification."""

from __future__ import annotations

from enum import Enum

CRITICAL_USAGE_PCT = 95.0
WARNING_USAGE_PCT = 80.0
WARNING_PENDING_PODS = 5


class HealthTier(str, Enum):
    HEALTHY = "Healthy"
    WARNING = "Warning"
    CRITICAL = "Critical"


def _above(value: float | None, threshold: float) -> bool:
    return value is not None and value > threshold


def classify(
    cpu_pct: float | None,
    mem_pct: float | None,
    pending_pods: int = 0,
    failed_pods: int = 0,
) -> HealthTier:
    """
    Map current usage and pod counts to a tier. First matching rule wins:
    Critical on usage above 95% or any failed pod, Warning on usage above 80%
    or more than 5 pending pods, Healthy otherwise. Missing usage never breaches.
    """
    if _above(cpu_pct, CRITICAL_USAGE_PCT) or _above(mem_pct, CRITICAL_USAGE_PCT) or failed_pods > 0:
        return HealthTier.CRITICAL
    if (
        _above(cpu_pct, WARNING_USAGE_PCT)
        or _above(mem_pct, WARNING_USAGE_PCT)
        or pending_pods > WARNING_PENDING_PODS
    ):
        return HealthTier.WARNING
    return HealthTier.HEALTHY
