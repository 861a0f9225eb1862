"""
Centralized settings for dockhand.

``DockhandSettings`` is the single validated source for retry budgets, the
docker CLI, the permission file location, logging and the remediation
workflow topology.  Every field can be set through ``DOCKHAND_*``
environment variables or a ``.env`` file; nested remediation fields use a
double underscore (``DOCKHAND_REMEDIATION__PRIMARY=db``).

Examples:
    >>> settings = DockhandSettings(retries=3, time_before_retry=1)
    >>> settings.retry_policy.budget_seconds
    3

Tags:
    configuration, settings, pydantic, environment, dockhand

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dockhand.core.models import RetryPolicy


class RemediationSettings(BaseModel):
    """Topology and pauses of the remediation ("fix") workflow."""

    name: str = Field(default="jf-fix", description="Workflow name used in logs and transcripts")
    primary: str = Field(default="jellyfin", description="Workload started first")
    dependents: list[str] = Field(
        default_factory=lambda: ["jellystat-db", "jellystat"],
        description="Workloads started after the primary, in this order",
    )
    warmup_seconds: int = Field(default=10, ge=0)
    settle_seconds: int = Field(default=5, ge=0)

    @field_validator("dependents")
    @classmethod
    def _no_primary_in_dependents(cls, value: list[str], info: ValidationInfo) -> list[str]:
        primary = info.data.get("primary")
        if primary is not None and primary in value:
            raise ValueError(f"primary {primary!r} cannot also be a dependent")
        if len(set(value)) != len(value):
            raise ValueError("dependents must be unique")
        return value

    @property
    def group(self) -> list[str]:
        """Primary followed by dependents."""
        return [self.primary, *self.dependents]


class DockhandSettings(BaseSettings):
    """dockhand configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DOCKHAND_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ── Convergence ──────────────────────────────────────────────
    retries: int = Field(default=12, ge=1, description="Poll attempts per convergence check")
    time_before_retry: int = Field(default=5, ge=0, description="Seconds slept before each poll")

    # ── Runtime ──────────────────────────────────────────────────
    docker_cmd: str = Field(default="docker")
    docker_timeout: int = Field(default=60, ge=1, description="Seconds allowed per docker CLI call")
    exec_shell: str = Field(default="bash")

    # ── Permissions ──────────────────────────────────────────────
    permissions_file: Path = Field(default=Path("settings") / "permissions.json")

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", description="json, console or auto")

    # ── Remediation ──────────────────────────────────────────────
    remediation: RemediationSettings = Field(default_factory=RemediationSettings)

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=self.retries, interval_seconds=self.time_before_retry)

    @property
    def json_logs(self) -> bool | None:
        if self.log_format == "json":
            return True
        if self.log_format == "console":
            return False
        return None


_settings_cache: dict[str, DockhandSettings] = {}


def get_settings(*, _force_reload: bool = False) -> DockhandSettings:
    """Load, validate, and cache the process-wide settings."""
    if not _force_reload and "default" in _settings_cache:
        return _settings_cache["default"]
    settings = DockhandSettings()
    _settings_cache["default"] = settings
    return settings


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = [
    "DockhandSettings",
    "RemediationSettings",
    "get_settings",
    "clear_settings_cache",
]
