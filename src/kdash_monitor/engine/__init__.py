"""Engine: health classification, scheduled collection and read APIs."""

from kdash_monitor.engine.collector import Collector, CycleReport, threshold_alerts
from kdash_monitor.engine.dashboard import ClusterDetail, ClusterHealth, Dashboard
from kdash_monitor.engine.health import HealthTier, classify

__all__ = [
    "ClusterDetail",
    "ClusterHealth",
    "Collector",
    "CycleReport",
    "Dashboard",
    "HealthTier",
    "classify",
    "threshold_alerts",
]
