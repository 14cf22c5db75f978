"""Tests for audit capture configuration."""

import pytest
from pydantic import ValidationError

from packages.audit_capture import AuditCaptureConfig, get_audit_config


class TestAuditCaptureConfig:
    """Test configuration loading."""

    def test_default_values(self, monkeypatch):
        """Test default configuration values."""
        for name in (
            "AUDIT_ENABLED",
            "AUDIT_SOFT_DELETE_METHOD",
            "AUDIT_OUTBOX_PATH",
            "AUDIT_STORE_BACKEND",
            "AUDIT_DB_PATH",
            "AUDIT_ACTOR_HEADER",
        ):
            monkeypatch.delenv(name, raising=False)

        config = AuditCaptureConfig(_env_file=None)

        assert config.enabled is True
        assert config.soft_delete_method == "DELETE"
        assert config.outbox_path == "data/audit_outbox.jsonl"
        assert config.outbox_enabled is True
        assert config.store_backend == "sqlite"
        assert config.db_path == "data/app.db"
        assert config.actor_header == "X-User-Id"

    def test_env_overrides(self, monkeypatch):
        """Test environment variables override defaults."""
        monkeypatch.setenv("AUDIT_ENABLED", "false")
        monkeypatch.setenv("AUDIT_SOFT_DELETE_METHOD", "ARCHIVE")
        monkeypatch.setenv("AUDIT_OUTBOX_PATH", "")
        monkeypatch.setenv("AUDIT_STORE_BACKEND", "memory")

        config = AuditCaptureConfig(_env_file=None)

        assert config.enabled is False
        assert config.soft_delete_method == "ARCHIVE"
        assert config.outbox_enabled is False
        assert config.store_backend == "memory"

    def test_invalid_backend(self):
        """Test unknown backends are rejected."""
        with pytest.raises(ValidationError):
            AuditCaptureConfig(store_backend="postgres", _env_file=None)

    def test_to_dict(self):
        """Test exporting config to dictionary."""
        data = AuditCaptureConfig(db_path="x.db", _env_file=None).to_dict()

        assert data["db_path"] == "x.db"
        assert set(data) == {
            "enabled",
            "soft_delete_method",
            "outbox_path",
            "store_backend",
            "db_path",
            "actor_header",
            "log_level",
            "log_json",
            "log_file",
        }

    def test_log_level_is_case_insensitive(self, monkeypatch):
        """Test the log level is read from the environment in any case."""
        monkeypatch.setenv("AUDIT_LOG_LEVEL", "debug")

        config = AuditCaptureConfig(_env_file=None)

        assert config.log_level == "DEBUG"
        assert config.log_json is True
        assert config.log_file is None

    def test_singleton_reload(self, monkeypatch):
        """Test the global config is cached until reloaded."""
        monkeypatch.setenv("AUDIT_DB_PATH", "first.db")
        first = get_audit_config(force_reload=True)
        monkeypatch.setenv("AUDIT_DB_PATH", "second.db")

        assert get_audit_config() is first
        assert get_audit_config(force_reload=True).db_path == "second.db"

        monkeypatch.delenv("AUDIT_DB_PATH")
        get_audit_config(force_reload=True)
