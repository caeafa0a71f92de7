"""CLI entrypoint for the monitor."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
import threading
from datetime import timedelta
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from kdash_monitor import __version__
from kdash_monitor.app import Monitor, build_monitor
from kdash_monitor.config import get_settings
from kdash_monitor.errors import ClusterNotFound, ConfigError, KdashError
from kdash_monitor.report import (
    alerts_table,
    cluster_detail_table,
    clusters_table,
    history_table,
    nodes_table,
    pods_table,
    print_table,
)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="kdash-monitor: poll Kubernetes clusters, keep usage history and raise alerts.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Cluster definitions YAML (default: KDASH_CLUSTER_CONFIG or k8s-configs/clusters.yaml)",
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="SQLite history database (default: KDASH_DB_PATH or data/metrics.db)",
    )
    parser.add_argument(
        "--kubeconfig",
        type=Path,
        default=None,
        help="Path to kubeconfig (default: KUBECONFIG env or ~/.kube/config)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("run", help="Collect snapshots and alerts until interrupted")
    sub.add_parser("clusters", help="Show health of all enabled clusters")
    p = sub.add_parser("cluster", help="Show one cluster in detail")
    p.add_argument("name")
    p = sub.add_parser("nodes", help="List nodes of a cluster")
    p.add_argument("name")
    p = sub.add_parser("pods", help="List pods of a cluster")
    p.add_argument("name")
    p.add_argument("--namespace", "-n", default="", help="Namespace (default: all)")
    sub.add_parser("alerts", help="List unresolved alerts")
    p = sub.add_parser("resolve", help="Mark an alert resolved")
    p.add_argument("alert_id", type=int)
    p = sub.add_parser("history", help="Show stored snapshots of a cluster")
    p.add_argument("name")
    p.add_argument("--hours", type=float, default=None, help="Window in hours (default: KDASH_HISTORY_WINDOW)")
    return parser.parse_args(argv)


def _run_forever(monitor: Monitor) -> None:
    stop = threading.Event()

    def _handle(signum: int, _frame: object) -> None:
        logging.getLogger("kdash_monitor").info("Received signal %d, shutting down", signum)
        stop.set()

    signal.signal(signal.SIGINT, _handle)
    signal.signal(signal.SIGTERM, _handle)
    monitor.collector.run(stop)


def _dispatch(args: argparse.Namespace, monitor: Monitor, console: Console) -> int:
    dash = monitor.dashboard
    if args.command == "run":
        _run_forever(monitor)
    elif args.command == "clusters":
        print_table(clusters_table(dash.clusters()), console)
    elif args.command == "cluster":
        print_table(cluster_detail_table(dash.cluster(args.name)), console)
    elif args.command == "nodes":
        print_table(nodes_table(args.name, dash.nodes(args.name)), console)
    elif args.command == "pods":
        print_table(pods_table(args.name, dash.pods(args.name, args.namespace)), console)
    elif args.command == "alerts":
        print_table(alerts_table(dash.alerts()), console)
    elif args.command == "resolve":
        changed = dash.resolve(args.alert_id)
        console.print(f"Alert {args.alert_id} {'resolved' if changed else 'was not active'}.")
    elif args.command == "history":
        hours = args.hours
        since = timedelta(hours=hours) if hours is not None else timedelta(seconds=monitor.settings.history_window)
        print_table(history_table(args.name, dash.history(args.name, since)), console)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for kdash-monitor CLI."""
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True)],
    )
    logger = logging.getLogger("kdash_monitor")
    if not args.verbose and args.command != "run":
        logger.setLevel(logging.WARNING)

    console = Console()
    try:
        settings = get_settings()
        if args.config:
            settings.cluster_config = args.config
        if args.db:
            settings.db_path = args.db
        if args.kubeconfig:
            settings.kubeconfig = args.kubeconfig
        monitor = build_monitor(settings)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KdashError as e:
        logger.exception("Startup failed")
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        return _dispatch(args, monitor, console)
    except ClusterNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KdashError as e:
        logger.exception("Command failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        monitor.close()


if __name__ == "__main__":
    sys.exit(main())
