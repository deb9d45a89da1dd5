"""Tests for configuration, logging and collaborator protocols."""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from editor_sync.config import SyncConfig
from editor_sync.identity import LocalIdentity
from editor_sync.logging import get_logger, setup_logging
from editor_sync.protocols import IdentityProvider, StateSink, WorkspaceRootProvider
from editor_sync.sync.gate import MessageGate
from editor_sync.sync.workspace import StaticWorkspaceRoots

# ===================================================================
# Configuration
# ===================================================================


class TestSyncConfig:
    """Tests for SyncConfig."""

    def test_defaults(self, monkeypatch):
        for var in (
            "EDITOR_SYNC_DATA_DIR",
            "EDITOR_SYNC_MESSAGE_TIMEOUT_MS",
            "EDITOR_SYNC_DEDUP_CAPACITY",
        ):
            monkeypatch.delenv(var, raising=False)
        config = SyncConfig()
        assert config.message_timeout_ms == 5000
        assert config.dedup_retention_ms == 300_000
        assert config.dedup_capacity == 1000
        assert config.cleanup_interval_s == 60.0
        assert config.data_dir == Path.home() / ".editor_sync"

    def test_env_overrides(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("EDITOR_SYNC_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("EDITOR_SYNC_MESSAGE_TIMEOUT_MS", "2500")
        monkeypatch.setenv("EDITOR_SYNC_DEDUP_CAPACITY", "50")
        monkeypatch.setenv("EDITOR_SYNC_LOG_TO_FILE", "no")
        config = SyncConfig()
        assert config.data_dir == tmp_path
        assert config.message_timeout_ms == 2500
        assert config.dedup_capacity == 50
        assert config.log_to_file is False

    def test_save_and_load(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_MESSAGE_TIMEOUT_MS", raising=False)
        config = SyncConfig(data_dir=tmp_path, message_timeout_ms=1234, dedup_capacity=10)
        config.save()
        assert config.config_file.exists()

        loaded = SyncConfig.load(config.config_file)
        assert loaded.message_timeout_ms == 1234
        assert loaded.dedup_capacity == 10
        assert loaded.data_dir == tmp_path

    def test_env_beats_file(self, monkeypatch, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"gate": {"message_timeout_ms": 1000}}))
        monkeypatch.setenv("EDITOR_SYNC_MESSAGE_TIMEOUT_MS", "7000")
        assert SyncConfig.load(config_file).message_timeout_ms == 7000

    def test_missing_file_uses_defaults(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_DEDUP_CAPACITY", raising=False)
        config = SyncConfig.load(tmp_path / "nope.yaml")
        assert config.dedup_capacity == 1000

    def test_build_ledger(self, monkeypatch, clock):
        monkeypatch.delenv("EDITOR_SYNC_DEDUP_CAPACITY", raising=False)
        config = SyncConfig(dedup_capacity=7, dedup_retention_ms=10, cleanup_interval_s=1.5)
        ledger = config.build_ledger(clock=clock)
        assert ledger.capacity == 7
        assert ledger.retention_ms == 10
        assert ledger.cleanup_interval_s == 1.5
        assert ledger.clock is clock

    def test_gate_from_config(self, monkeypatch, identity, roots, sink, clock):
        monkeypatch.delenv("EDITOR_SYNC_MESSAGE_TIMEOUT_MS", raising=False)
        config = SyncConfig(message_timeout_ms=42, dedup_capacity=3)
        gate = MessageGate.from_config(config, identity, roots, sink, clock=clock)
        assert gate.message_timeout_ms == 42
        assert gate.ledger.capacity == 3


# ===================================================================
# Logging
# ===================================================================


class TestSetupLogging:
    """Tests for setup_logging driven by SyncConfig."""

    @staticmethod
    def _reset(logger: logging.Logger) -> None:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    def test_setup_with_file(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_LOG_LEVEL", raising=False)
        monkeypatch.delenv("EDITOR_SYNC_LOG_TO_FILE", raising=False)
        config = SyncConfig(data_dir=tmp_path, log_level="DEBUG", log_to_file=True)
        logger = setup_logging(config)
        try:
            assert logger.name == "editor_sync"
            assert logger.level == logging.DEBUG
            assert len(logger.handlers) == 2
            assert config.log_file.exists()
        finally:
            self._reset(logger)

    def test_log_to_file_false(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_LOG_TO_FILE", raising=False)
        logger = SyncConfig(data_dir=tmp_path, log_to_file=False).configure_logging()
        try:
            assert len(logger.handlers) == 1
            assert not (tmp_path / "editor_sync.log").exists()
        finally:
            self._reset(logger)

    def test_invalid_level_defaults_to_info(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_LOG_LEVEL", raising=False)
        config = SyncConfig(data_dir=tmp_path, log_level="LOUD", log_to_file=False)
        logger = setup_logging(config)
        try:
            assert logger.level == logging.INFO
        finally:
            self._reset(logger)

    def test_env_level_reaches_logger(self, monkeypatch, tmp_path: Path):
        monkeypatch.setenv("EDITOR_SYNC_LOG_LEVEL", "debug")
        monkeypatch.setenv("EDITOR_SYNC_LOG_TO_FILE", "false")
        logger = SyncConfig(data_dir=tmp_path).configure_logging()
        try:
            assert logger.level == logging.DEBUG
            assert get_logger("sync.gate").getEffectiveLevel() == logging.DEBUG
        finally:
            self._reset(logger)

    def test_yaml_level_reaches_logger(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_LOG_LEVEL", raising=False)
        monkeypatch.delenv("EDITOR_SYNC_LOG_TO_FILE", raising=False)
        monkeypatch.delenv("EDITOR_SYNC_DATA_DIR", raising=False)
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            yaml.dump({"data_dir": str(tmp_path), "log_level": "ERROR", "log_to_file": False})
        )
        logger = SyncConfig.load(config_file).configure_logging()
        try:
            assert logger.level == logging.ERROR
            assert len(logger.handlers) == 1
        finally:
            self._reset(logger)

    def test_reconfigure_replaces_handlers(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_LOG_TO_FILE", raising=False)
        config = SyncConfig(data_dir=tmp_path, log_to_file=True)
        first = setup_logging(config)
        old_handlers = list(first.handlers)
        second = setup_logging(config)
        try:
            assert len(second.handlers) == len(old_handlers)
            assert not any(h in second.handlers for h in old_handlers)
        finally:
            self._reset(second)

    def test_file_receives_records(self, monkeypatch, tmp_path: Path):
        monkeypatch.delenv("EDITOR_SYNC_LOG_LEVEL", raising=False)
        monkeypatch.delenv("EDITOR_SYNC_LOG_TO_FILE", raising=False)
        config = SyncConfig(data_dir=tmp_path / "nested", log_level="DEBUG", log_to_file=True)
        logger = config.configure_logging()
        try:
            get_logger("sync.gate").debug("hello from gate")
            for handler in logger.handlers:
                handler.flush()
            assert "editor_sync.sync.gate" in config.log_file.read_text()
        finally:
            self._reset(logger)

    def test_get_logger(self):
        assert get_logger("sync.ledger").name == "editor_sync.sync.ledger"


# ===================================================================
# Collaborator protocols
# ===================================================================


class TestProtocolConformance:
    def test_local_identity(self):
        assert isinstance(LocalIdentity("x"), IdentityProvider)

    def test_static_roots(self):
        assert isinstance(StaticWorkspaceRoots(), WorkspaceRootProvider)

    def test_recording_sink(self, sink):
        assert isinstance(sink, StateSink)
