"""Configuration and environment for the monitor."""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from kdash_monitor.clusters.models import ClusterConfig
from kdash_monitor.errors import ConfigError


class Settings(BaseSettings):
    """Monitor settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_prefix="KDASH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Inputs
    cluster_config: Path = Field(
        default=Path("k8s-configs/clusters.yaml"),
        description="YAML file listing the clusters to monitor",
    )
    kubeconfig: Path | None = Field(
        default=None,
        description="Path to kubeconfig; uses KUBECONFIG env or default location if unset",
    )
    db_path: Path = Field(default=Path("data/metrics.db"), description="SQLite history database")

    # Schedules (seconds)
    collection_interval: float = Field(default=60.0, gt=0, description="Seconds between collection cycles")
    retention_interval: float = Field(default=3600.0, gt=0, description="Seconds between prune runs")
    retention_window: float = Field(default=86400.0, gt=0, description="Maximum snapshot age kept")
    history_window: float = Field(default=86400.0, gt=0, description="Default history query window")

    # Timeouts (seconds)
    request_timeout: float = Field(default=10.0, gt=0, description="Timeout for listing and metric queries")
    reachability_timeout: float = Field(default=5.0, gt=0, description="Timeout for liveness probes")


class ClustersFile(BaseModel):
    """Top-level shape of the clusters YAML file."""

    clusters: list[ClusterConfig] = Field(default_factory=list)


def get_settings() -> Settings:
    """Return validated settings instance."""
    return Settings()


def parse_cluster_configs(data: object) -> list[ClusterConfig]:
    """Validate already-loaded YAML data into cluster configs."""
    if data is None:
        raise ConfigError("cluster configuration is empty")
    try:
        parsed = ClustersFile.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid cluster configuration: {e}") from e
    seen: set[str] = set()
    for cfg in parsed.clusters:
        if cfg.name in seen:
            raise ConfigError(f"duplicate cluster name: {cfg.name}")
        seen.add(cfg.name)
    return parsed.clusters


def load_cluster_configs(path: str | Path) -> list[ClusterConfig]:
    """Load cluster definitions from a YAML file, preserving file order."""
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read cluster configuration {p}: {e}") from e
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse cluster configuration {p}: {e}") from e
    return parse_cluster_configs(data)
