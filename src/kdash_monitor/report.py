"""Render dashboard records as Rich tables."""

from __future__ import annotations

from rich.console import Console
from rich.table import Table

from kdash_monitor.clusters import NodeInfo, NodeReadiness, PodInfo, PodPhase
from kdash_monitor.engine import ClusterDetail, ClusterHealth, HealthTier
from kdash_monitor.store import Alert, Severity, Snapshot

TIER_STYLES = {
    HealthTier.HEALTHY: "green",
    HealthTier.WARNING: "yellow",
    HealthTier.CRITICAL: "bold red",
}

SEVERITY_STYLES = {
    Severity.WARNING: "yellow",
    Severity.CRITICAL: "bold red",
}


def pct(value: float | None) -> str:
    return "-" if value is None else f"{value:.1f}%"


def _tier(tier: HealthTier) -> str:
    return f"[{TIER_STYLES[tier]}]{tier.value}[/]"


def clusters_table(clusters: list[ClusterHealth]) -> Table:
    table = Table(title="Clusters")
    for col in ("Name", "Status", "CPU", "Memory", "Nodes", "Pods", "Context"):
        table.add_column(col)
    for c in clusters:
        name = c.display_name if c.display_name == c.name else f"{c.display_name} ({c.name})"
        status = _tier(c.status) if c.reachable else f"{_tier(c.status)} (unreachable)"
        table.add_row(name, status, pct(c.cpu_pct), pct(c.mem_pct), str(c.node_count), str(c.pod_count), c.context)
    return table


def cluster_detail_table(detail: ClusterDetail) -> Table:
    c = detail.cluster
    table = Table(title=f"Cluster {c.display_name}", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Status", _tier(c.status))
    table.add_row("Reachable", "yes" if c.reachable else "no")
    table.add_row("CPU", pct(c.cpu_pct))
    table.add_row("Memory", pct(c.mem_pct))
    table.add_row("Nodes", str(c.node_count))
    table.add_row(
        "Pods",
        f"{detail.pods.total} (running={detail.pods.running}, pending={detail.pods.pending}, "
        f"failed={detail.pods.failed})",
    )
    table.add_row("Context", c.context)
    return table


def nodes_table(cluster: str, nodes: list[NodeInfo]) -> Table:
    table = Table(title=f"Nodes in {cluster} ({len(nodes)})")
    for col in ("Name", "Status", "Roles", "Age", "Version", "CPU", "Memory"):
        table.add_column(col)
    for n in nodes:
        style = "green" if n.readiness is NodeReadiness.READY else "red"
        table.add_row(
            n.name,
            f"[{style}]{n.readiness.value}[/]",
            ",".join(sorted(n.roles)),
            n.age,
            n.version,
            pct(n.cpu_pct),
            pct(n.mem_pct),
        )
    return table


def pods_table(cluster: str, pods: list[PodInfo]) -> Table:
    table = Table(title=f"Pods in {cluster} ({len(pods)})")
    for col in ("Namespace", "Name", "Status", "Restarts", "Age", "Node"):
        table.add_column(col)
    for p in pods:
        style = {PodPhase.RUNNING: "green", PodPhase.PENDING: "yellow", PodPhase.FAILED: "red"}.get(p.phase, "")
        status = f"[{style}]{p.phase.value}[/]" if style else p.phase.value
        table.add_row(p.namespace, p.name, status, str(p.restarts), p.age, p.node)
    return table


def alerts_table(alerts: list[Alert]) -> Table:
    table = Table(title=f"Active alerts ({len(alerts)})")
    for col in ("ID", "Time", "Cluster", "Severity", "Message"):
        table.add_column(col)
    for a in alerts:
        when = a.timestamp.strftime("%Y-%m-%d %H:%M:%S") if a.timestamp else ""
        style = SEVERITY_STYLES[a.severity]
        table.add_row(str(a.id), when, a.cluster, f"[{style}]{a.severity.value}[/]", a.message)
    return table


def history_table(cluster: str, snapshots: list[Snapshot]) -> Table:
    table = Table(title=f"History of {cluster} ({len(snapshots)} snapshots)")
    for col in ("Time", "CPU", "Memory", "Nodes", "Pods"):
        table.add_column(col)
    for s in snapshots:
        when = s.timestamp.strftime("%Y-%m-%d %H:%M:%S") if s.timestamp else ""
        table.add_row(when, pct(s.cpu_pct), pct(s.mem_pct), str(s.node_count), str(s.pod_count))
    return table


def print_table(table: Table, console: Console | None = None) -> None:
    (console or Console()).print(table)
