"""
Audit capture configuration.

Settings are read from environment variables (prefix ``AUDIT_``) and an
optional ``.env`` file.
"""

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuditCaptureConfig(BaseSettings):
    """
    Audit capture configuration from environment variables.

    Environment Variables:
        AUDIT_ENABLED: Capture audit records on commit (default: True)
        AUDIT_SOFT_DELETE_METHOD: Method token marking a soft delete (default: DELETE)
        AUDIT_OUTBOX_PATH: Spool file for undelivered records, empty disables (default: data/audit_outbox.jsonl)
        AUDIT_STORE_BACKEND: Unit of work backend - 'sqlite' or 'memory' (default: sqlite)
        AUDIT_DB_PATH: SQLite database file (default: data/app.db)
        AUDIT_ACTOR_HEADER: Request header carrying the acting user (default: X-User-Id)
        AUDIT_LOG_LEVEL: Log level for the application (default: INFO)
        AUDIT_LOG_JSON: Render JSON log lines instead of console output (default: True)
        AUDIT_LOG_FILE: Optional log file in addition to stdout (default: none)

    Usage:
        config = AuditCaptureConfig()
        print(f"Auditing into {config.db_path} (backend={config.store_backend})")
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    enabled: bool = Field(default=True, description="Capture audit records on commit")
    soft_delete_method: str = Field(
        default="DELETE", min_length=1, description="Method token marking a soft delete"
    )
    outbox_path: Optional[str] = Field(
        default="data/audit_outbox.jsonl", description="Outbox spool file"
    )
    store_backend: Literal["sqlite", "memory"] = Field(default="sqlite", description="Store backend")
    db_path: str = Field(default="data/app.db", description="SQLite database file")
    actor_header: str = Field(default="X-User-Id", description="Header carrying the actor id")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_json: bool = Field(default=True, description="Render JSON log lines")
    log_file: Optional[str] = Field(default=None, description="Optional log file")

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v

    @property
    def outbox_enabled(self) -> bool:
        return bool(self.outbox_path)

    def to_dict(self) -> dict:
        """Export config as dictionary (safe for logging)."""
        return {
            "enabled": self.enabled,
            "soft_delete_method": self.soft_delete_method,
            "outbox_path": self.outbox_path,
            "store_backend": self.store_backend,
            "db_path": self.db_path,
            "actor_header": self.actor_header,
            "log_level": self.log_level,
            "log_json": self.log_json,
            "log_file": self.log_file,
        }


# Global config instance (singleton pattern)
_config_instance: AuditCaptureConfig | None = None


def get_audit_config(force_reload: bool = False) -> AuditCaptureConfig:
    """
    Get global audit capture configuration singleton.

    Args:
        force_reload: Force reload from environment (useful for testing)

    Returns:
        AuditCaptureConfig instance
    """
    global _config_instance

    if _config_instance is None or force_reload:
        _config_instance = AuditCaptureConfig()

    return _config_instance
