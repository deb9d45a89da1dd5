"""
Editor Sync Configuration Management

Loads configuration from YAML file with environment variable overrides.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from editor_sync.logging import setup_logging
from editor_sync.sync.ledger import DedupLedger


def default_data_dir() -> Path:
    """Return the default data directory."""
    return Path.home() / ".editor_sync"


def _env_bool(value: str) -> bool:
    return value.lower() in ("true", "1", "yes")


@dataclass
class SyncConfig:
    """Tunables for the inbound admission pipeline."""

    data_dir: Path = field(default_factory=default_data_dir)
    log_level: str = "INFO"
    log_to_file: bool = True
    message_timeout_ms: int = 5000
    dedup_retention_ms: int = 300_000
    dedup_capacity: int = 1000
    cleanup_interval_s: float = 60.0

    def __post_init__(self):
        if isinstance(self.data_dir, str):
            self.data_dir = Path(self.data_dir)
        self.data_dir = self.data_dir.expanduser()

        # Environment overrides
        if env_data_dir := os.environ.get("EDITOR_SYNC_DATA_DIR"):
            self.data_dir = Path(env_data_dir).expanduser()
        self.log_level = os.environ.get("EDITOR_SYNC_LOG_LEVEL", self.log_level)
        if env_log_to_file := os.environ.get("EDITOR_SYNC_LOG_TO_FILE"):
            self.log_to_file = _env_bool(env_log_to_file)
        if env_timeout := os.environ.get("EDITOR_SYNC_MESSAGE_TIMEOUT_MS"):
            self.message_timeout_ms = int(env_timeout)
        if env_retention := os.environ.get("EDITOR_SYNC_DEDUP_RETENTION_MS"):
            self.dedup_retention_ms = int(env_retention)
        if env_capacity := os.environ.get("EDITOR_SYNC_DEDUP_CAPACITY"):
            self.dedup_capacity = int(env_capacity)
        if env_interval := os.environ.get("EDITOR_SYNC_CLEANUP_INTERVAL_S"):
            self.cleanup_interval_s = float(env_interval)

    @property
    def config_file(self) -> Path:
        return self.data_dir / "config.yaml"

    @property
    def log_file(self) -> Path:
        return self.data_dir / "editor_sync.log"

    def ensure_dirs(self) -> None:
        """Create necessary directories."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> dict:
        """Convert config to dictionary for serialization."""
        return {
            "data_dir": str(self.data_dir),
            "log_level": self.log_level,
            "log_to_file": self.log_to_file,
            "gate": {
                "message_timeout_ms": self.message_timeout_ms,
            },
            "dedup": {
                "retention_ms": self.dedup_retention_ms,
                "capacity": self.dedup_capacity,
                "cleanup_interval_s": self.cleanup_interval_s,
            },
        }

    def save(self) -> None:
        """Save configuration to YAML file."""
        self.ensure_dirs()
        with open(self.config_file, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def configure_logging(self) -> logging.Logger:
        """Apply log_level, log_to_file and log_file to the editor_sync logger."""
        return setup_logging(self)

    def build_ledger(self, clock=None) -> DedupLedger:
        """Create a DedupLedger sized by this configuration."""
        kwargs = {}
        if clock is not None:
            kwargs["clock"] = clock
        return DedupLedger(
            retention_ms=self.dedup_retention_ms,
            capacity=self.dedup_capacity,
            cleanup_interval_s=self.cleanup_interval_s,
            **kwargs,
        )

    @classmethod
    def load(cls, config_path: Path | None = None) -> "SyncConfig":
        """
        Load configuration from file.

        Precedence (highest to lowest):
        1. Environment variables
        2. Config file values
        3. Default values
        """
        config = cls()

        if config_path is None:
            config_path = config.config_file

        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

            if "data_dir" in data:
                config.data_dir = Path(data["data_dir"]).expanduser()
            if "log_level" in data:
                config.log_level = data["log_level"]
            if "log_to_file" in data:
                config.log_to_file = data["log_to_file"]

            if gate_data := data.get("gate"):
                if "message_timeout_ms" in gate_data:
                    config.message_timeout_ms = int(gate_data["message_timeout_ms"])

            if dedup_data := data.get("dedup"):
                if "retention_ms" in dedup_data:
                    config.dedup_retention_ms = int(dedup_data["retention_ms"])
                if "capacity" in dedup_data:
                    config.dedup_capacity = int(dedup_data["capacity"])
                if "cleanup_interval_s" in dedup_data:
                    config.cleanup_interval_s = float(dedup_data["cleanup_interval_s"])

            # Re-apply environment overrides
            config.__post_init__()

        return config


def get_config() -> SyncConfig:
    """Get the configuration from the default location."""
    return SyncConfig.load()
