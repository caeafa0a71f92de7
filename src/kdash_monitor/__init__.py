"""Multi-cluster Kubernetes health monitor: polling, history and alerting."""

__version__ = "0.1.0"
