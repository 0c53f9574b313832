"""Environment-driven settings for audit-tables.

Every value can be supplied through an ``AUDIT_``-prefixed environment
variable or a ``.env`` file; CLI flags override whatever is loaded here.

Examples:
    >>> from audit_tables.core.settings import AuditSettings
    >>> settings = AuditSettings()
    >>> settings.strict_if_triggers_exist
    False
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AuditSettings(BaseSettings):
    """Settings shared by the CLI and the programmatic entry points.

    Fields
    ──────
    database_url                  : ``mysql://user:pw@host:port/db``
    log_level                     : Structlog log level
    json_logs                     : JSON logs (True), console (False), auto (None)
    execution_log                 : Append executed statements to this file
    strict_if_audit_table_exists  : Fail instead of skipping an existing audit table
    strict_if_triggers_exist      : Fail instead of skipping existing audit triggers
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Connection ───────────────────────────────────────────────
    database_url: str | None = Field(
        default=None,
        description="MySQL/MariaDB URL, e.g. mysql://user:pw@localhost:3306/app",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    json_logs: bool | None = None
    execution_log: Path | None = None

    # ── Policy ───────────────────────────────────────────────────
    strict_if_audit_table_exists: bool = False
    strict_if_triggers_exist: bool = False

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {value}")
        return level


def get_settings() -> AuditSettings:
    """Load settings from the environment."""
    return AuditSettings()


__all__ = ["AuditSettings", "get_settings"]
