"""
Centralized settings for relayrun.

Manifesto:
    Platform code is expected to pass the same options on every leg of a
    resumed run.  The easiest way to guarantee that is to read them from
    one validated place: ``RelaySettings`` resolves ``RELAY_*``
    environment variables and ``.env`` files once, and every entry point
    builds its ``RunOptions`` from it.

Examples:
    >>> from relayrun.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.timeout_seconds
    300.0

    Override through the environment::

        RELAY_TIMEOUT_SECONDS=240 RELAY_SPLIT=2 relayrun worker --module jobs

Tags:
    relayrun, configuration, settings, pydantic

Doc-Types:
    api-reference
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RelaySettings(BaseSettings):
    """relayrun configuration.

    All fields can be set via ``RELAY_*`` environment variables (e.g.
    ``RELAY_TIMER_QUOTA=20``) or a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="RELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Run defaults ─────────────────────────────────────────────
    timeout_seconds: float = Field(default=300.0, gt=0, description="Time budget per invocation")
    resume_delay_seconds: float = Field(default=60.0, ge=0, description="Delay before a continuation fires")
    split: int = Field(default=4, ge=0, le=4, description="Parallel fan-out exponent (2**split segments)")
    debug: bool = Field(default=False)

    # ── Host limits ──────────────────────────────────────────────
    timer_quota: int = Field(default=20, ge=1, description="Maximum outstanding timers per deployment")

    # ── Storage ──────────────────────────────────────────────────
    namespace: str = Field(default="relayrun", min_length=1, description="Key prefix for continuation records")
    database_path: Path = Field(
        default_factory=lambda: Path.home() / ".relayrun" / "continuations.db",
        description="SQLite file holding continuation records",
    )
    jobstore_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL for the APScheduler job store (defaults to database_path)",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="auto", pattern="^(auto|json|console)$")

    def resolved_jobstore_url(self) -> str:
        """Job store URL, sharing the continuation database by default."""
        return self.jobstore_url or f"sqlite:///{self.database_path}"

    @property
    def json_logs(self) -> bool | None:
        if self.log_format == "auto":
            return None
        return self.log_format == "json"


_settings_cache: dict[str, RelaySettings] = {}


def get_settings(*, _force_reload: bool = False) -> RelaySettings:
    """Load, validate, and cache a :class:`RelaySettings` instance."""
    if _force_reload or "default" not in _settings_cache:
        _settings_cache["default"] = RelaySettings()
    return _settings_cache["default"]


def clear_settings_cache() -> None:
    """Clear the settings cache (primarily for testing)."""
    _settings_cache.clear()


__all__ = ["RelaySettings", "get_settings", "clear_settings_cache"]
